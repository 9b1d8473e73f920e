"""Insights gateway - keyword insights served from a hosted Langflow flow."""

__version__ = "1.0.0"
