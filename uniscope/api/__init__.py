"""FastAPI HTTP layer package.

Public re-export so callers can write::

    from uniscope.api import app

    uvicorn uniscope.api:app --reload
"""

from uniscope.api.app import app

__all__ = ["app"]
