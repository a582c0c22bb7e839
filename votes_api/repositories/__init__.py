"""
Persistence adapters.

These modules encapsulate how vote data is stored/retrieved (today a single
JSON file). Services depend on the adapter instead of touching the file.
"""
