"""docvector — PDF upload, chunking and embedding behind a session-gated web app."""

__version__ = "0.1.0"
