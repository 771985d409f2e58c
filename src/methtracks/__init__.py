"""methtracks: gene-centred DNA methylation track viewer."""

__version__ = "0.1.0"
