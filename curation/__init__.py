"""Vault curation: agent extraction, review-gated elevation proposals and the processing queue."""

__version__ = "0.1.0"
