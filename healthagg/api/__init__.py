"""HTTP surface — FastAPI app factory and /healthz routes."""
