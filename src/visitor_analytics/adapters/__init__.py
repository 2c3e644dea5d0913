"""Adapters for external systems (storage, geo database, HTTP services, web)."""
