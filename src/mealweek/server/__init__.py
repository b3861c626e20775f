"""ASGI application factory and dependencies for the meal-plan server."""

from mealweek.server.app import app, create_app

__all__ = ["app", "create_app"]
