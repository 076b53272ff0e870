"""Repository layer: protocols and SQLAlchemy implementations."""
