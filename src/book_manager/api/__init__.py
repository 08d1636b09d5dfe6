"""External API clients for metadata resolution.

Submodules:
    openlibrary -- Open Library search client (best match only)
"""
