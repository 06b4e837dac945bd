"""Addon stream aggregation and resolution engine."""
