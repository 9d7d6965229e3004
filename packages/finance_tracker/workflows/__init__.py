"""Workflow orchestrators composing ingest, extraction and persistence."""
