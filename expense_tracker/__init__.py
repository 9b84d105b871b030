"""Personal expense tracker with budgets and flat-file storage."""

__version__ = "0.1.0"
