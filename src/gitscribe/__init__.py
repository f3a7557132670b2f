"""GitScribe - documentation generation pipeline for GitHub repositories."""

__version__ = "0.1.0"
