"""Database module for SQLAlchemy base, session and client management."""
