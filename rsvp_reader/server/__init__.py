"""HTTP API for the reader engine (FastAPI app, models, session store)."""
