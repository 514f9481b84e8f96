"""Rate limiting adapters.

This package provides a small abstraction layer so the service can start
with an in-memory limiter and later move to a shared store without changing
the API layer.
"""
