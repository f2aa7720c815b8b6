"""DocFlow - access control and document lifecycle core for a multi-tenant DMS."""

__version__ = "0.1.0"
