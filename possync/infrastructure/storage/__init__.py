"""Local durable storage."""
