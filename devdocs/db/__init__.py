"""Database layer package.

Public re-exports so callers can write::

    from devdocs.db import get_connection, init_db
    from devdocs.db import pages
"""

from devdocs.db.connection import get_connection
from devdocs.db.migrations import init_db
from devdocs.db import pages

__all__ = ["get_connection", "init_db", "pages"]
