"""Composition engine — runs the graph core end to end."""
