"""
High-level use cases for the votes API.

Routers (FastAPI endpoints) call these services instead of manipulating the
JSON data file directly.
"""
