"""Domain layer: entities, exceptions and repository contracts."""
