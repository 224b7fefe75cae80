"""Shared constants and exceptions."""
