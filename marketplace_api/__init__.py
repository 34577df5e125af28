"""FastAPI service for the services marketplace.

This package provides REST API endpoints for user accounts, the public
service catalog and booking requests, backed by MongoDB.
"""

__version__ = "1.0.0"
