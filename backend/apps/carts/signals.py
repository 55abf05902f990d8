from django.contrib.auth.signals import user_logged_in, user_logged_out
from django.dispatch import receiver

from apps.common import get_logger

from .container import build_cart_context, build_cart_service
from .errors import CartError

logger = get_logger(__name__).bind(component="carts", layer="signal")

service = build_cart_service()


@receiver(user_logged_in, dispatch_uid="carts_merge_on_login")
def merge_cart_on_login(sender, request=None, user=None, **kwargs):
    if request is None or user is None or not hasattr(request, "session"):
        return
    ctx = build_cart_context(request)
    try:
        result = service.on_authenticated(ctx, user.pk)
    except CartError as exc:
        # Lines stay in the session and are folded in on the next cart request.
        logger.warning(
            "Cart merge deferred after login", owner_id=user.pk, code=exc.code, error=str(exc)
        )
        return
    logger.debug("Cart merged on login", owner_id=user.pk, merged_lines=result.merged_lines)


@receiver(user_logged_out, dispatch_uid="carts_forget_on_logout")
def forget_cart_on_logout(sender, request=None, user=None, **kwargs):
    if request is None or not hasattr(request, "session"):
        return
    service.on_signed_out(build_cart_context(request))
