"""Domain layer: models and view models."""
