"""Builders for desired resource state."""
