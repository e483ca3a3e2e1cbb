"""Event and registration management API."""

__version__ = "1.0.0"
