"""Votes API: a small JSON-file-backed CRUD service for vote records."""
from votes_api.app import create_app

__all__ = ["create_app"]
