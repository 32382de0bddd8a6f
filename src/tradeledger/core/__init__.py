"""Core domain layer: entities, rules and store interfaces."""
