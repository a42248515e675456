"""Temporal activity package for brochure ingestion."""

from .jobs import process_brochure_job_activity

__all__ = ["process_brochure_job_activity"]
