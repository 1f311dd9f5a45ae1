"""
Database helpers shared by the CareerPath server.

Structure:
- utils.py: engine and session factory creation, table creation
- pagination.py: page/limit arithmetic used by list endpoints
"""

from .pagination import Page, PageParams, paginate, slice_page
from .utils import create_all, create_engine, create_sessionmaker

__all__ = [
    "Page",
    "PageParams",
    "create_all",
    "create_engine",
    "create_sessionmaker",
    "paginate",
    "slice_page",
]
