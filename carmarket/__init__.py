"""Car marketplace backend: photo extraction, listing ingestion and lifecycle."""
