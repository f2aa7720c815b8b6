"""HTTP adapter for the document core."""
