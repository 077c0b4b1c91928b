"""Curation domain: entities, value objects and events.

Entities are SQLAlchemy mapped classes; import them from their own modules.
"""
