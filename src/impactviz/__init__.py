"""Meteoroid parameter sync and map-based impact animation."""
