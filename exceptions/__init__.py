"""
Custom exceptions for Pakety.

This module provides a hierarchy of custom exceptions for consistent error handling
throughout the application.

Exception Hierarchy:
--------------------
PaketyException (base)
├── CartException
│   ├── CartLineNotFoundException
│   ├── InvalidQuantityException
│   └── CartSyncException
├── ProductException
│   └── ProductNotFoundException
├── PromotionException
│   ├── PromotionTierNotFoundException
│   └── InvalidPromotionTierException
└── CartApiException
    ├── CartApiTransportException
    └── CartApiResponseException

Usage:
------
Repositories and services raise specific exceptions:
    raise ProductNotFoundException(product_id=42)

The HTTP layer maps them to status codes, the cart store surfaces them to the UI:
    try:
        await store.remove_line(line_id)
    except CartSyncException as e:
        show_toast(user_message(e))
"""

from .base import PaketyException
from .cart import CartException, CartLineNotFoundException, InvalidQuantityException, CartSyncException
from .product import ProductException, ProductNotFoundException
from .promotion import PromotionException, PromotionTierNotFoundException, InvalidPromotionTierException
from .api import CartApiException, CartApiTransportException, CartApiResponseException

__all__ = [
    # Base
    'PaketyException',

    # Cart
    'CartException',
    'CartLineNotFoundException',
    'InvalidQuantityException',
    'CartSyncException',

    # Product
    'ProductException',
    'ProductNotFoundException',

    # Promotion
    'PromotionException',
    'PromotionTierNotFoundException',
    'InvalidPromotionTierException',

    # API client
    'CartApiException',
    'CartApiTransportException',
    'CartApiResponseException',
]
