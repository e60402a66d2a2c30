"""Resolve workflow for linking copies to titles."""
