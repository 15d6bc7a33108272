"""
HTTP control surface for a running session.
"""

from __future__ import annotations

from .server import create_app
from .state import SessionManager

__all__ = ["create_app", "SessionManager"]
