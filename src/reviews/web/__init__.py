"""Reviews web API (FastAPI)."""
