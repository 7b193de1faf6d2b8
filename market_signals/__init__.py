"""Market signal pipeline: ingest, classify, dedupe and score contract job postings."""

__version__ = "1.0.0"
