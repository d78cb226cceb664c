"""Leak correlation, field read grouping, and report rendering."""
