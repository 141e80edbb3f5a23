"""Development environment launcher for Policy Reporter UI."""

__version__ = "0.1.0"
