"""Building blocks for collecting and recording instrumentation data about async tasks, resources and operations."""

__version__ = "0.1.0"