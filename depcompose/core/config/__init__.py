"""Configuration — build.yml discovery and loading."""
