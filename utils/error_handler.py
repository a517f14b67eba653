"""
Error Handler Utility for cart notifications

Maps the exceptions raised by the cart store, the API client and the
services to localized, user-facing toast messages. The API error handler
in app.py sends the same text as "userMessage" next to "message".

Usage:
    from utils.error_handler import user_message

    try:
        await store.update_quantity(line_id, quantity)
    except PaketyException as e:
        show_toast(user_message(e))
"""

import logging
from typing import Optional

from exceptions import (
    PaketyException,
    CartLineNotFoundException,
    InvalidQuantityException,
    CartSyncException,
    ProductNotFoundException,
    PromotionTierNotFoundException,
    InvalidPromotionTierException,
    CartApiException,
    CartApiTransportException,
)
from utils.localizator import Localizator

logger = logging.getLogger(__name__)

ERROR_MESSAGE_KEYS = {
    CartLineNotFoundException: "error_cart_line_not_found",
    InvalidQuantityException: "error_invalid_quantity",
    CartSyncException: "error_cart_sync",
    ProductNotFoundException: "error_product_not_found",
    PromotionTierNotFoundException: "error_promotion_tier_not_found",
    InvalidPromotionTierException: "error_invalid_promotion_tier",
}


def _message_key(exception: PaketyException) -> Optional[str]:
    if isinstance(exception, CartSyncException) and isinstance(exception.cause, CartApiTransportException):
        return "error_cart_sync_offline"
    if isinstance(exception, CartApiException):
        return "error_api_unavailable"
    for exception_type in type(exception).__mro__:
        key = ERROR_MESSAGE_KEYS.get(exception_type)
        if key:
            return key
    return None


def user_message(exception: Exception, lang: Optional[str] = None) -> str:
    """
    Convert an exception to a localized user-friendly message.

    Args:
        exception: Exception raised by the cart store, API client or a service
        lang: Optional language code, defaults to config.STORE_LANGUAGE

    Returns:
        Localized message string. Unknown exceptions get the generic
        "unexpected error" text.
    """
    if not isinstance(exception, PaketyException):
        logger.error(f"[Error] Unexpected error: {type(exception).__name__} - {exception}", exc_info=exception)
        return Localizator.get_text("error_unexpected", lang=lang)

    logger.warning(f"[Error] Handled {type(exception).__name__}: {exception}")

    key = _message_key(exception)
    if key is None:
        logger.error(f"[Error] Unmapped exception type: {type(exception).__name__}")
        return Localizator.get_text("error_unexpected", lang=lang)

    text = Localizator.get_text(key, lang=lang)
    try:
        return text.format(**exception.details)
    except KeyError as e:
        # Missing formatting parameter - return the unformatted text
        logger.error(f"[Error] Missing format parameter in message '{key}': {e}")
        return text
