"""HTTP API support: FastAPI dependencies."""
