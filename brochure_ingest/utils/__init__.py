"""Utility helpers for the brochure ingestion CLI."""
