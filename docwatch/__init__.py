"""Keep a markdown overview of a project in sync with its source tree."""

__version__ = "0.1.0"
