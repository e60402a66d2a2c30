"""Snapshot server: blob repository and FastAPI application."""
