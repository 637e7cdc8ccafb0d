"""Draft git workflow artifacts with a tool-calling language model."""

__version__ = "0.1.0"
