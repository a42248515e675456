"""Workflow package exposing public Temporal workflows."""

from .job_workflow import BrochureJobInput, BrochureJobWorkflow

__all__ = ["BrochureJobInput", "BrochureJobWorkflow"]
