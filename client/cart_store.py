"""
Client-side cart store.

Single in-memory authority for the cart contents shown to the user,
reconciled against the remote Cart API:

- Every mutation is applied locally first (optimistic), then sent to the API.
- Any remote failure reloads the authoritative cart and raises
  CartSyncException, so the UI snaps back and can show a toast.
- Nothing is retried automatically.

The store is constructed explicitly with an API client and loaded by
calling init() from the composition root:

    store = CartStore(CartApiClient(user_id=42))
    await store.init()
    await store.add_line(product_id=7, quantity="1.5")
"""

import asyncio
import logging
from decimal import Decimal
from functools import partial
from typing import Awaitable, Callable, Iterable

from exceptions.api import CartApiException
from exceptions.cart import CartLineNotFoundException, CartSyncException, InvalidQuantityException
from models.cart_totals import CartTotalsDTO
from models.cartItem import CartItemDTO, CartLineDTO
from models.promotion_tier import PromotionTierDTO, PromotionResultDTO
from services.cart_totals import CartTotalsService
from services.promotion import PromotionService
from utils.quantity import add_quantities, format_quantity, parse_quantity, require_positive

logger = logging.getLogger(__name__)

Listener = Callable[["CartStore"], None]


class CartStore:

    def __init__(self, api_client):
        """
        Args:
            api_client: CartApiClient (or any object with the same coroutine methods)
        """
        self.api_client = api_client
        self._lines: dict[int, CartLineDTO] = {}
        self._listeners: list[Listener] = []
        self._is_loading = False
        self._pending_mutations = 0
        # Load sequencing: only the most recently started fetch may apply its result
        self._load_seq = 0
        self._load_task: asyncio.Task | None = None
        # Latest-intent sequencing for update_quantity, per line
        self._quantity_seq = 0
        self._quantity_intent: dict[int, int] = {}
        self._quantity_queued: dict[int, Decimal] = {}
        self._quantity_senders: dict[int, asyncio.Task] = {}

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------

    @property
    def lines(self) -> list[CartLineDTO]:
        return list(self._lines.values())

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def is_mutating(self) -> bool:
        return self._pending_mutations > 0

    def get_line(self, line_id: int) -> CartLineDTO | None:
        return self._lines.get(line_id)

    def find_line_by_product(self, product_id: int) -> CartLineDTO | None:
        for line in self._lines.values():
            if line.product_id == product_id:
                return line
        return None

    def get_total_count(self) -> int:
        """Number of distinct lines. The cart badge shows variety, not units."""
        return len(self._lines)

    def get_subtotal(self) -> Decimal:
        return CartTotalsService.calculate_subtotal(self._lines.values())

    def get_promotion(self, tiers: Iterable[PromotionTierDTO], lang: str | None = None) -> PromotionResultDTO:
        return PromotionService.evaluate(self.get_subtotal(), tiers, lang)

    def get_total(self, tiers: Iterable[PromotionTierDTO], base_delivery_fee) -> CartTotalsDTO:
        """Totals for the current local lines (subtotal, delivery fee, discount, total)."""
        return CartTotalsService.calculate(self._lines.values(), tiers, base_delivery_fee)

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a callback invoked with the store after every state change.

        Returns:
            Function that unregisters the listener
        """
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self):
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception(f"[CartStore] Listener {listener!r} failed")

    def _replace_lines(self, lines: Iterable[CartLineDTO]):
        self._lines = {line.id: line for line in lines}
        self._notify()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def init(self):
        """First load. Called once by the application after construction."""
        logger.info("[CartStore] Initializing")
        await self.load()

    async def load(self) -> list[CartLineDTO]:
        """
        Fetch the authoritative cart and replace local state wholesale.

        A call made while a load is in flight joins that load instead of
        starting another one.

        Raises:
            CartApiException: The cart could not be fetched (local state is kept)
        """
        if self._load_task is not None and not self._load_task.done():
            return await self._load_task
        return await self._start_load()

    async def _start_load(self) -> list[CartLineDTO]:
        self._load_seq += 1
        self._is_loading = True
        self._load_task = asyncio.ensure_future(self._fetch(self._load_seq))
        return await self._load_task

    async def _fetch(self, seq: int) -> list[CartLineDTO]:
        try:
            lines = await self.api_client.get_cart()
            if seq == self._load_seq:
                self._replace_lines(lines)
                logger.debug(f"[CartStore] Loaded {len(lines)} line(s)")
            else:
                logger.debug(f"[CartStore] Discarded result of superseded load #{seq}")
            return self.lines
        finally:
            if seq == self._load_seq:
                self._is_loading = False

    async def _reload_after_failure(self, operation: str):
        try:
            await self._start_load()
        except CartApiException as e:
            # Local state stays optimistic until the next successful load
            logger.error(f"[CartStore] Reload after failed {operation} also failed: {e}")

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def _optimistic_mutation(
        self,
        operation: str,
        apply_local: Callable[[], None] | None,
        remote_call: Callable[[], Awaitable],
        is_current: Callable[[], bool] = lambda: True
    ):
        """
        Apply a local change, then confirm it remotely.

        Args:
            operation: Name used in logs and in CartSyncException
            apply_local: Synchronous optimistic change, None for no visible change
            remote_call: Coroutine function performing the API request
            is_current: False once a newer intent superseded this one. A
                superseded call never reloads over the newer intent.

        Returns:
            Result of remote_call

        Raises:
            CartSyncException: The remote call failed; state was reloaded
        """
        if apply_local is not None:
            apply_local()
            self._notify()

        self._pending_mutations += 1
        try:
            return await remote_call()
        except CartApiException as e:
            logger.warning(f"[CartStore] {operation} failed: {e}")
            if is_current():
                await self._reload_after_failure(operation)
            raise CartSyncException(operation, e) from e
        finally:
            self._pending_mutations -= 1

    async def add_line(
        self,
        product_id: int,
        quantity=1,
        on_success: Callable[[], None] | None = None
    ) -> list[CartLineDTO]:
        """
        Add a product to the cart.

        An existing line for the product is incremented locally right away.
        A new line only appears once the server returned it, so the UI never
        shows a line without its product snapshot.
        If the reload after a successful POST fails, the error is logged
        and on_success still runs, since the server applied the add.

        Raises:
            InvalidQuantityException: quantity <= 0 (before any local change or request)
            CartSyncException: The API rejected the request or was unreachable
        """
        amount = require_positive(quantity)
        existing = self.find_line_by_product(product_id)

        apply_local = None
        if existing is not None:
            def apply_local():
                line = self._lines.get(existing.id)
                if line is not None:
                    self._lines[line.id] = line.model_copy(
                        update={"quantity": add_quantities(line.quantity, amount)}
                    )

        added = await self._optimistic_mutation(
            "add",
            apply_local,
            lambda: self.api_client.add_to_cart(product_id, amount)
        )
        logger.info(f"[CartStore] Added {format_quantity(amount)} x product {product_id}")
        try:
            await self._start_load()
        except CartApiException as e:
            # The add itself went through, keep the server's quantity for the line
            logger.error(f"[CartStore] Reload after add of product {product_id} failed: {e}")
            line = self._lines.get(added.id) if added is not None else None
            if line is not None and line.quantity != added.quantity:
                self._lines[line.id] = line.model_copy(update={"quantity": added.quantity})
                self._notify()
        if on_success is not None:
            on_success()
        return self.lines

    async def remove_line(self, line_id: int):
        """
        Remove a line. It disappears locally before the request is sent.

        Raises:
            CartSyncException: The API rejected the request or was unreachable
        """
        self._quantity_intent.pop(line_id, None)
        self._quantity_queued.pop(line_id, None)

        def apply_local():
            self._lines.pop(line_id, None)

        await self._optimistic_mutation(
            "remove",
            apply_local,
            lambda: self.api_client.remove_line(line_id)
        )
        logger.info(f"[CartStore] Removed line {line_id}")

    async def update_quantity(self, line_id: int, quantity):
        """
        Set the quantity of a line; quantity <= 0 removes it.

        Calls for the same line are sequenced by intent. At most one PATCH
        per line is in flight; calls made meanwhile only record the newest
        quantity, which is sent once the in-flight request settles. The
        server therefore always ends on the newest quantity. A failure of a
        superseded request is dropped instead of reloading over the newer
        quantity.

        Raises:
            InvalidQuantityException: quantity is not a number
            CartLineNotFoundException: line is not in the local cart
            CartSyncException: The API rejected the newest request or was unreachable
        """
        try:
            amount = parse_quantity(quantity)
        except (ArithmeticError, ValueError, TypeError):
            raise InvalidQuantityException(quantity, "not a number")
        if not amount.is_finite():
            raise InvalidQuantityException(quantity, "not a finite number")
        if line_id not in self._lines:
            raise CartLineNotFoundException(line_id)

        if amount <= 0:
            return await self.remove_line(line_id)

        self._quantity_seq += 1
        token = self._quantity_seq
        self._quantity_intent[line_id] = token

        def is_current() -> bool:
            return self._quantity_intent.get(line_id) == token

        line = self._lines[line_id]
        self._lines[line_id] = line.model_copy(update={"quantity": format_quantity(amount)})
        self._notify()

        sender = self._quantity_senders.get(line_id)
        if sender is None or sender.done():
            sender = asyncio.ensure_future(self._send_quantity(line_id, amount))
            self._quantity_senders[line_id] = sender
        else:
            self._quantity_queued[line_id] = amount
            logger.debug(f"[CartStore] Line {line_id} busy, queued quantity {format_quantity(amount)}")

        try:
            updated = await asyncio.shield(sender)
        except CartSyncException:
            if not is_current():
                logger.info(f"[CartStore] Dropped failure of superseded update for line {line_id}")
                return
            self._quantity_intent.pop(line_id, None)
            raise

        if not is_current():
            return
        self._quantity_intent.pop(line_id, None)
        line = self._lines.get(line_id)
        if updated is None:
            self._lines.pop(line_id, None)
            self._notify()
        elif line is not None and line.quantity != updated.quantity:
            self._lines[line_id] = line.model_copy(update={"quantity": updated.quantity})
            self._notify()
        logger.info(f"[CartStore] Line {line_id} quantity set to {format_quantity(amount)}")

    async def _send_quantity(self, line_id: int, amount: Decimal) -> CartItemDTO | None:
        """
        PATCH quantities of one line, one request at a time.

        When a request settles and a newer quantity was queued meanwhile,
        that quantity is sent next; intermediate values are skipped.

        Returns:
            Server response to the last request sent (None if it removed the line)
        """
        def is_current() -> bool:
            return line_id in self._quantity_intent and line_id not in self._quantity_queued

        try:
            while True:
                try:
                    updated = await self._optimistic_mutation(
                        "update",
                        None,
                        partial(self.api_client.update_quantity, line_id, amount),
                        is_current=is_current
                    )
                except CartSyncException:
                    if line_id not in self._quantity_queued:
                        raise
                    logger.info(f"[CartStore] Update of line {line_id} failed, sending the newer quantity")
                    updated = None

                queued = self._quantity_queued.pop(line_id, None)
                if queued is None:
                    return updated
                amount = queued
        finally:
            if self._quantity_senders.get(line_id) is asyncio.current_task():
                del self._quantity_senders[line_id]

    async def clear(self):
        """
        Empty the cart. Lines vanish locally before the request is sent.

        Raises:
            CartSyncException: The API rejected the request or was unreachable
        """
        self._quantity_intent.clear()
        self._quantity_queued.clear()

        def apply_local():
            self._lines = {}

        await self._optimistic_mutation("clear", apply_local, self.api_client.clear_cart)
        logger.info("[CartStore] Cart cleared")
