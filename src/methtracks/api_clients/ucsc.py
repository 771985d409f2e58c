"""UCSC Genome Browser REST API client.

Wraps the ``getData/track`` endpoint, which returns the rows of a browser
table intersecting a chromosome range as JSON.
"""

import logging
from typing import Any

from methtracks.api_clients.base import CachedAPIClient
from methtracks.config.schema import PipelineConfig

logger = logging.getLogger(__name__)

UCSC_API_URL = "https://api.genome.ucsc.edu"


class UCSCError(RuntimeError):
    """Error payload returned by the UCSC REST API."""


class UCSCClient(CachedAPIClient):
    """Cached, retrying client for UCSC ``getData/track`` queries."""

    def __init__(
        self,
        *args,
        base_url: str = UCSC_API_URL,
        max_items: int = 100000,
        **kwargs,
    ):
        super().__init__(*args, default_params={"maxItemsOutput": max_items}, **kwargs)
        self.base_url = base_url.rstrip("/")
        self.max_items = max_items

    def get_track(
        self,
        genome: str,
        track: str,
        chrom: str,
        start: int | None = None,
        end: int | None = None,
    ) -> list[dict[str, Any]]:
        """
        Fetch the rows of a UCSC track intersecting a chromosome range.

        Args:
            genome: Assembly name (e.g. "hg19")
            track: Track/table name (e.g. "refGene")
            chrom: Chromosome name (e.g. "chr2")
            start: 0-based range start; whole chromosome when omitted
            end: Range end; whole chromosome when omitted

        Returns:
            List of row dicts with the table's native column names

        Raises:
            UCSCError: If the payload carries an ``error`` entry
            requests.HTTPError: On HTTP errors (after retries)
        """
        params: dict[str, Any] = {
            "genome": genome,
            "track": track,
            "chrom": chrom,
        }
        if start is not None and end is not None:
            params["start"] = int(start)
            params["end"] = int(end)

        payload = self.get_json(f"{self.base_url}/getData/track", params=params)

        if "error" in payload:
            raise UCSCError(
                f"UCSC getData/track failed for {genome}/{track} "
                f"{chrom}:{start}-{end}: {payload['error']}"
            )

        if payload.get("maxItemsLimit"):
            logger.warning(
                f"UCSC track {track} truncated at {self.max_items} items "
                f"for {chrom}:{start}-{end}"
            )

        rows = payload.get(track, [])
        # Split tables are keyed by chromosome
        if isinstance(rows, dict):
            rows = rows.get(chrom, [])

        logger.debug(f"Fetched {len(rows)} rows from {genome}/{track} {chrom}:{start}-{end}")
        return rows

    @classmethod
    def from_config(cls, config: PipelineConfig) -> "UCSCClient":
        """Create a UCSC client from pipeline configuration."""
        return super().from_config(
            config,
            base_url=config.api.base_url,
            max_items=config.api.max_items,
        )
