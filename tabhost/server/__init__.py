"""HTTP control surface over the tab service."""
from .app import create_app
from .service import TabService

__all__ = ["create_app", "TabService"]
