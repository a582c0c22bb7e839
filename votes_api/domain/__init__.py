"""Domain types and rules for vote records (no I/O, no FastAPI)."""
