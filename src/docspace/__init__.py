"""docspace: multi-tenant workspace document management API."""

__version__ = "1.0.0"
