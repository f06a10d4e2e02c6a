"""Routes package for FastAPI endpoints.

This package contains all API route modules for the form engine.
"""

from formengine.routes import admin, forms, health

__all__ = ["admin", "forms", "health"]
