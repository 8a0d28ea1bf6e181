"""Inspection helpers."""
