"""CSV ingestion: decoding, previewing and schema-driven row extraction."""
