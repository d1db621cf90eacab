"""vidgate — request orchestration for an external media extraction tool."""

__version__ = "1.0.0"
