"""
Exception handlers for the CareerPath server.

``setup_exception_handlers`` registers the validation and catch-all handlers
with the FastAPI application.
"""

from .global_handler import setup_exception_handlers

__all__ = ["setup_exception_handlers"]
