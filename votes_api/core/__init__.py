"""
Core utilities shared across the votes API.

This package hosts the cross-cutting pieces: configuration (env vars, paths,
feature flags), logging setup and the Prometheus metrics middleware. Routers
and services depend on these primitives instead of reading os.environ or
touching prometheus_client directly.
"""
