"""
HTTP surface for the booking workflow.

Exposes booking creation and vendor decisions, the notification inbox,
place search and outbox maintenance as a FastAPI application.
"""

from api.main import app, create_app

__all__ = ["app", "create_app"]
