"""
FastAPI/ASGI application entrypoint.

Run with: uvicorn achievement_minter.api_server.app:app --host 0.0.0.0 --port 8000
"""

from achievement_minter.api_server.server import create_app

app = create_app()

__all__ = ["app"]
