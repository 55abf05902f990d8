from __future__ import annotations

from typing import Optional

from django.contrib.auth.signals import user_logged_in, user_logged_out
from rest_framework import status
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken

from apps.api.exceptions import ApplicationError
from apps.common import get_logger

logger = get_logger(__name__).bind(component="auth", layer="service")


class InvalidRefreshToken(ApplicationError):
    default_code = "VALIDATION_ERROR"
    default_message = "Invalid token"
    default_status = status.HTTP_400_BAD_REQUEST


class SessionService:
    """
    Signs shoppers in and out.

    Both transitions are announced through Django's ``user_logged_in`` and
    ``user_logged_out`` signals so other apps (the cart) can react without
    this app knowing about them.
    """

    def __init__(self, token_class=RefreshToken):
        self.token_class = token_class
        self.logger = logger.bind(service="SessionService")

    def signed_in(self, request, user) -> None:
        self.logger.info("User signed in", user_id=user.pk)
        user_logged_in.send(sender=user.__class__, request=request, user=user)

    def logout(self, request, refresh_token: Optional[str]) -> None:
        user = getattr(request, "user", None)
        actor_id = getattr(user, "pk", None)
        if not refresh_token:
            self.logger.warning("Logout rejected: missing refresh token", actor_id=actor_id)
            raise InvalidRefreshToken(details={"refresh": None})
        try:
            self.token_class(refresh_token).blacklist()
        except TokenError as exc:
            self.logger.warning("Logout rejected: token error", actor_id=actor_id, error=str(exc))
            raise InvalidRefreshToken(details={"error": str(exc)}) from exc
        self.logger.info("User logged out", actor_id=actor_id)
        user_logged_out.send(
            sender=user.__class__ if user is not None else None, request=request, user=user
        )
