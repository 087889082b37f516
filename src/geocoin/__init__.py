"""Procedural cache world and coin persistence engine."""
