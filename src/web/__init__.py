"""Web control surface (FastAPI)."""
