"""Brochure ingestion: map extracted brochure pages to units and build a project catalog."""
