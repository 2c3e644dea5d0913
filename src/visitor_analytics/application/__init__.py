"""Application layer (use cases) for visitor analytics."""
