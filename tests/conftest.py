"""Shared fixtures: a small HOXD-cluster annotation and mocked UCSC payloads.

Coordinates follow hg19 RefSeq for HOXD1 (NM_024501) and HOXD10
(NM_002148) so that the expected windows are realistic.
"""

from unittest.mock import MagicMock

import polars as pl
import pytest

from methtracks.api_clients.ucsc import UCSCClient
from methtracks.config.schema import PipelineConfig


ANNOTATION_CSV = """IlmnID,CHR,MAPINFO,UCSC_RefGene_Name,UCSC_RefGene_Accession,UCSC_RefGene_Group,Relation_to_UCSC_CpG_Island
cg00000001,2,177053000,HOXD1;HOXD1,NM_024501;NM_024501,TSS1500;TSS1500,N_Shore
cg00000002,2,177053400,HOXD1,NM_024501,TSS200,Island
cg00000003,2,177054500,hoxd1,NM_024501,Body,Island
cg00000004,2,176982000,HOXD10,NM_002148,Body,Island
cg00000005,2,177060000,,,,OpenSea
cg00000006,7,27132000,HOXA1,NM_005522,TSS200,Island
cg00000007,X,153000000,MECP2,NM_004992,Body,OpenSea
cg00000008,2,,HOXD1,NM_024501,Body,
"""

HOXD1_ROW = {
    "bin": 1413,
    "name": "NM_024501",
    "chrom": "chr2",
    "strand": "+",
    "txStart": 177053306,
    "txEnd": 177055635,
    "cdsStart": 177053575,
    "cdsEnd": 177055440,
    "exonCount": 2,
    "exonStarts": "177053306,177054979,",
    "exonEnds": "177053795,177055635,",
    "score": 0,
    "name2": "HOXD1",
    "cdsStartStat": "cmpl",
    "cdsEndStat": "cmpl",
    "exonFrames": "0,1,",
}

HOXD10_ROW = {
    "bin": 1413,
    "name": "NM_002148",
    "chrom": "chr2",
    "strand": "+",
    "txStart": 176981491,
    "txEnd": 176984670,
    "cdsStart": 176981557,
    "cdsEnd": 176984373,
    "exonCount": 2,
    "exonStarts": "176981491,176983956,",
    "exonEnds": "176982552,176984670,",
    "score": 0,
    "name2": "HOXD10",
    "cdsStartStat": "cmpl",
    "cdsEndStat": "cmpl",
    "exonFrames": "0,2,",
}

CPG_ROWS = [
    {
        "bin": 1413, "chrom": "chr2", "chromStart": 177052800, "chromEnd": 177054200,
        "name": "CpG: 120", "length": 1400, "cpgNum": 120, "gcNum": 900,
        "perCpg": 17.1, "perGc": 64.3, "obsExp": 0.85,
    },
]

SNP_ROWS = [
    {
        "bin": 1413, "chrom": "chr2", "chromStart": 177053120, "chromEnd": 177053121,
        "name": "rs1000001", "strand": "+", "observed": "A/G", "class": "single",
    },
    {
        "bin": 1413, "chrom": "chr2", "chromStart": 177055001, "chromEnd": 177055002,
        "name": "rs1000002", "strand": "+", "observed": "C/T", "class": "single",
    },
]

CYTOBAND_ROWS = [
    {"chrom": "chr2", "chromStart": 0, "chromEnd": 4400000, "name": "p25.3", "gieStain": "gneg"},
    {"chrom": "chr2", "chromStart": 90500000, "chromEnd": 96800000, "name": "p11.1", "gieStain": "acen"},
    {"chrom": "chr2", "chromStart": 175700000, "chromEnd": 179300000, "name": "q31.1", "gieStain": "gpos75"},
    {"chrom": "chr2", "chromStart": 237300000, "chromEnd": 243199373, "name": "q37.3", "gieStain": "gneg"},
]


def _overlaps(row, start_key, end_key, start, end):
    if start is None or end is None:
        return True
    return row[end_key] >= start and row[start_key] <= end


def fake_get_track(genome, track, chrom, start=None, end=None):
    """Stand-in for UCSCClient.get_track serving the fixture rows."""
    if track == "refGene":
        rows = [HOXD1_ROW, HOXD10_ROW]
        return [r for r in rows if r["chrom"] == chrom
                and _overlaps(r, "txStart", "txEnd", start, end)]
    tables = {
        "cpgIslandExt": CPG_ROWS,
        "snp147Common": SNP_ROWS,
        "cytoBandIdeo": CYTOBAND_ROWS,
    }
    rows = tables.get(track, [])
    return [r for r in rows if r["chrom"] == chrom
            and _overlaps(r, "chromStart", "chromEnd", start, end)]


@pytest.fixture
def annotation_csv(tmp_path):
    """Illumina-manifest style annotation file."""
    path = tmp_path / "annotation.csv"
    path.write_text(ANNOTATION_CSV)
    return path


@pytest.fixture
def betas_csv(tmp_path):
    """Beta matrix with an unannotated probe and one missing value."""
    path = tmp_path / "betas.csv"
    path.write_text(
        "ID_REF,S1,S2\n"
        "cg00000001,0.10,0.20\n"
        "cg00000002,0.05,NA\n"
        "cg00000003,0.80,0.90\n"
        "cg00000004,0.50,0.55\n"
        "cg00000005,0.70,0.65\n"
        "cg00000006,0.30,0.35\n"
        "cg99999999,0.40,0.45\n"
    )
    return path


@pytest.fixture
def test_config(tmp_path, annotation_csv):
    """Config rooted in tmp_path."""
    return PipelineConfig(
        data_dir=tmp_path / "data",
        cache_dir=tmp_path / "cache",
        annotation_path=annotation_csv,
        output_dir=tmp_path / "output",
    )


@pytest.fixture
def mock_client():
    """UCSCClient double answering from the fixture rows."""
    client = MagicMock(spec=UCSCClient)
    client.get_track.side_effect = fake_get_track
    return client


@pytest.fixture
def hoxd1_models():
    """Gene model table for HOXD1 as produced by parse_gene_models."""
    from methtracks.tracks import parse_gene_models
    return parse_gene_models([HOXD1_ROW])


@pytest.fixture
def window_probes():
    """Probe annotation rows used directly in measurement tests."""
    return pl.DataFrame({
        "probe_id": ["cg00000001", "cg00000002", "cg00000003", "cg00000004", "cg00000006"],
        "chromosome": ["chr2", "chr2", "chr2", "chr2", "chr7"],
        "position": [177053000, 177053400, 177054500, 176982000, 27132000],
    })
