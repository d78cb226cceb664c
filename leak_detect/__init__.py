"""Leak detection and attribution for automated form-filling crawls."""
