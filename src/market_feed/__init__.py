"""Live market feed client: streaming ingestion, per-symbol aggregation and rate tracking."""

__version__ = "0.1.0"
