"""Domain layer - entries, identifiers and the bootstrap/migration services."""
