"""depcompose — dependency-graph composer for multi-module builds."""

__version__ = "0.1.0"
