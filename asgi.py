"""
asgi.py -- Application assembly for ReelHub.

Resource routers (videos, comments, likes, follows) are included here so
api/main.py stays limited to the authentication core.

Run with:  uvicorn asgi:app --reload
"""

from api.main import app

__all__ = ["app"]
