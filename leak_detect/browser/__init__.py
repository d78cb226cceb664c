"""Helpers for talking to the browser over Playwright and CDP."""
