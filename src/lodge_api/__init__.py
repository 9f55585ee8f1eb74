"""HTTP API for the lodge backend (FastAPI, served by uvicorn or Mangum on Lambda)."""
