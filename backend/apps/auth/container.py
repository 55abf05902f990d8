from __future__ import annotations

from .services import SessionService


def build_session_service() -> SessionService:
    return SessionService()
