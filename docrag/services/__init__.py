"""Core services: ingestion pipeline, retrieval and answer generation."""
