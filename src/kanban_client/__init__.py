"""Console client for a multi-tenant Kanban backend."""

__version__ = "0.1.0"
