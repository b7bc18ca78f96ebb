"""Regions dump ingestion pipeline.

This package fetches and decodes regions dumps and classifies regions
by tag. It prepares enriched region records for the store layer.
"""
