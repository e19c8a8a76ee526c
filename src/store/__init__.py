"""Places database layer.

This package resolves origins, places and visits against the
destination database and owns its transaction boundaries.
"""
