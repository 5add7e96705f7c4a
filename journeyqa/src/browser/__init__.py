"""Playwright session, selector resolution and action execution."""
