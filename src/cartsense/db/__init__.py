"""Persistence layer: SQLAlchemy models, engine helpers and repositories."""
