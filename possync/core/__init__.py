"""Core domain layer: entities, ports and sync services."""
