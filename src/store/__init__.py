"""Storage layer.

This package persists enriched regions into per-snapshot SQLite stores
and exposes the derived update-estimate views to the SDK.
"""
