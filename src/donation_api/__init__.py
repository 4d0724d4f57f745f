"""FastAPI application for the donation checkout backend."""
