"""FastAPI HTTP layer package.

Public re-export so callers can write::

    from hirescore.api import app

    uvicorn hirescore.api:app --reload
"""

from hirescore.api.app import app

__all__ = ["app"]
