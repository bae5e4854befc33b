"""Domain layer: share entities, errors and events."""
