"""Shared services (configuration)."""
