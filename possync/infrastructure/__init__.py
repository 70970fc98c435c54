"""Infrastructure adapters: remote HTTP client, network probe, SQLite storage."""
