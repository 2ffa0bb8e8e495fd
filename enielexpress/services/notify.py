import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)


def notify(send: Callable[..., Any], *args, **kwargs) -> bool:
    """Best-effort notification: a failure is logged and reported as False, never raised."""
    try:
        send(*args, **kwargs)
        return True
    except Exception:
        logger.exception("Error sending WhatsApp notification via %s", getattr(send, "__name__", send))
        return False
