"""Job ingestion and resume matching engine."""

__version__ = "0.1.0"
