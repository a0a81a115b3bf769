"""Secrets vault core: data model, providers, API proxy, search, .env generation and health."""

__version__ = "2.1.0"

__all__ = ["env_gen", "health", "models", "providers", "proxy", "search"]