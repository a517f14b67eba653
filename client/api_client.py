"""
HTTP client for the Pakety storefront API.

Used by the cart store to read and mutate the authoritative cart, and to
fetch the promotion tiers and the base delivery fee it needs for totals.

Error contract:
- Server answered with a non-2xx status -> CartApiResponseException
- Request failed or timed out before a response -> CartApiTransportException
"""

import asyncio
import logging
from decimal import Decimal, InvalidOperation

import aiohttp

import config
from exceptions.api import CartApiResponseException, CartApiTransportException
from models.cartItem import CartItemDTO, CartLineDTO
from models.promotion_tier import PromotionTierDTO
from utils.quantity import format_quantity

logger = logging.getLogger(__name__)


class CartApiClient:

    def __init__(
        self,
        base_url: str | None = None,
        user_id: int | None = None,
        timeout: float | None = None,
        session: aiohttp.ClientSession | None = None
    ):
        """
        Args:
            base_url: API root, defaults to config.API_BASE_URL
            user_id: Sent as X-User-Id, None for the anonymous cart
            timeout: Total request timeout in seconds, defaults to config.API_TIMEOUT_SECONDS
            session: Externally owned aiohttp session (not closed by close())
        """
        self.base_url = (base_url or config.API_BASE_URL).rstrip("/")
        self.user_id = user_id
        self.timeout = aiohttp.ClientTimeout(total=timeout or config.API_TIMEOUT_SECONDS)
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "CartApiClient":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def close(self):
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True
        return self._session

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.user_id is not None:
            headers["X-User-Id"] = str(self.user_id)
        return headers

    @staticmethod
    def _error_message(body) -> str | None:
        # Domain errors use {"message": ...}, FastAPI's own errors {"detail": ...}
        if isinstance(body, dict):
            message = body.get("message") or body.get("detail")
            return message if isinstance(message, str) else None
        return None

    async def _request(self, method: str, path: str, json: dict | None = None):
        """
        Perform a request and return the decoded JSON body (None for 204).

        Raises:
            CartApiResponseException: Non-2xx status
            CartApiTransportException: Connection error, timeout or undecodable body
        """
        url = f"{self.base_url}{path}"
        try:
            async with self._get_session().request(method, url, json=json, headers=self._headers()) as response:
                if response.status == 204:
                    return None
                try:
                    body = await response.json(content_type=None)
                except ValueError:
                    body = None
                if response.status >= 400:
                    message = self._error_message(body)
                    logger.warning(f"[CartApi] {method} {path} -> {response.status}: {message}")
                    raise CartApiResponseException(method, path, response.status, message)
                return body
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"[CartApi] {method} {path} failed: {type(e).__name__}: {e}")
            raise CartApiTransportException(method, path, str(e) or type(e).__name__) from e

    # ------------------------------------------------------------------
    # Cart
    # ------------------------------------------------------------------

    async def get_cart(self) -> list[CartLineDTO]:
        body = await self._request("GET", "/api/cart")
        return [CartLineDTO.model_validate(line) for line in body or []]

    async def add_to_cart(self, product_id: int, quantity=1) -> CartItemDTO:
        """Add (or merge into) a line. quantity is sent as a decimal string."""
        body = await self._request(
            "POST", "/api/cart",
            json={"productId": product_id, "quantity": format_quantity(quantity)}
        )
        return CartItemDTO.model_validate(body)

    async def update_quantity(self, line_id: int, quantity) -> CartItemDTO | None:
        """Returns None when the server removed the line (quantity <= 0)."""
        body = await self._request(
            "PATCH", f"/api/cart/{line_id}",
            json={"quantity": format_quantity(quantity)}
        )
        return CartItemDTO.model_validate(body) if body is not None else None

    async def remove_line(self, line_id: int) -> None:
        await self._request("DELETE", f"/api/cart/{line_id}")

    async def clear_cart(self) -> None:
        await self._request("DELETE", "/api/cart")

    # ------------------------------------------------------------------
    # Promotions & settings
    # ------------------------------------------------------------------

    async def get_promotion_tiers(self) -> list[PromotionTierDTO]:
        body = await self._request("GET", "/api/admin/promotions/tiers")
        return [PromotionTierDTO.model_validate(tier) for tier in body or []]

    async def get_settings(self) -> dict:
        body = await self._request("GET", "/api/settings")
        return body or {}

    async def get_base_delivery_fee(self) -> Decimal:
        """
        Base delivery fee from settings.

        Falls back to config.DEFAULT_DELIVERY_FEE when the setting is missing
        or not a number. API errors propagate.
        """
        settings = await self.get_settings()
        value = settings.get("delivery_fee")
        if value is None or isinstance(value, bool):
            return Decimal(config.DEFAULT_DELIVERY_FEE)
        try:
            fee = Decimal(str(value))
        except InvalidOperation:
            logger.warning(f"[CartApi] Invalid delivery_fee setting {value!r}, using default")
            return Decimal(config.DEFAULT_DELIVERY_FEE)
        if not fee.is_finite() or fee < 0:
            logger.warning(f"[CartApi] Invalid delivery_fee setting {value!r}, using default")
            return Decimal(config.DEFAULT_DELIVERY_FEE)
        return fee
