"""NSW property sales extract ingestion."""

__version__ = "0.1.0"
