"""Web layer: FastAPI app and routers."""
