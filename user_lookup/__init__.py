"""Permission-aware user lookup service."""
