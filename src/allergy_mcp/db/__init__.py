"""Allergy record storage."""
