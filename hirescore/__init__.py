"""HireScore job posting fetch service."""

__version__ = "1.0.0"
