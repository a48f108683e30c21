"""Core — domain models, graph algorithms, composition engine, use cases."""
