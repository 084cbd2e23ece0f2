"""Domain layer: value objects, entities, exceptions and pure services."""
