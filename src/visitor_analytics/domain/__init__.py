"""Domain layer for visitor analytics."""
