"""HTTP API server (FastAPI) and its in-memory job store."""
