"""
Unit Tests: CartStore (client-side cart state)

The API client is replaced by an AsyncMock so each test controls what the
server "has" and when a request fails. Covers:
- load() / init() and load coalescing
- Optimistic add, remove, update and clear with reload on failure
- Latest-intent sequencing of update_quantity
- Distinct-line count and totals
"""

import asyncio
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from client.cart_store import CartStore
from exceptions.api import CartApiResponseException, CartApiTransportException
from exceptions.cart import CartLineNotFoundException, CartSyncException, InvalidQuantityException
from models.cartItem import CartItemDTO


def _server_error():
    return CartApiResponseException("PATCH", "/api/cart/1", 500, "boom")


@pytest.fixture
def server_lines(make_line):
    """Authoritative cart on the fake server."""
    return [
        make_line(1, 1, "2", price="5000"),
        make_line(2, 2, "1.5", price="2000", unit="kg"),
    ]


@pytest.fixture
def api_client(server_lines):
    client = MagicMock()
    client.get_cart = AsyncMock(side_effect=lambda: list(server_lines))
    client.add_to_cart = AsyncMock(return_value=CartItemDTO(id=1, product_id=1, quantity="3"))
    client.update_quantity = AsyncMock(
        side_effect=lambda line_id, quantity: CartItemDTO(id=line_id, product_id=line_id, quantity=quantity)
    )
    client.remove_line = AsyncMock(return_value=None)
    client.clear_cart = AsyncMock(return_value=None)
    return client


@pytest_asyncio.fixture
async def store(api_client):
    store = CartStore(api_client)
    await store.init()
    api_client.get_cart.reset_mock()
    return store


class TestLoad:

    @pytest.mark.asyncio
    async def test_init_loads_lines(self, store, server_lines):
        assert [line.id for line in store.lines] == [1, 2]
        assert store.is_loading is False

    @pytest.mark.asyncio
    async def test_load_twice_gives_same_state(self, store):
        first = await store.load()
        second = await store.load()

        assert first == second

    @pytest.mark.asyncio
    async def test_overlapping_loads_are_coalesced(self, store, api_client, server_lines):
        release = asyncio.Event()

        async def slow_get_cart():
            await release.wait()
            return list(server_lines)

        api_client.get_cart.side_effect = slow_get_cart

        first = asyncio.ensure_future(store.load())
        second = asyncio.ensure_future(store.load())
        await asyncio.sleep(0)
        assert store.is_loading is True

        release.set()
        await asyncio.gather(first, second)

        assert api_client.get_cart.await_count == 1
        assert store.is_loading is False

    @pytest.mark.asyncio
    async def test_load_failure_keeps_state(self, store, api_client):
        api_client.get_cart.side_effect = CartApiTransportException("GET", "/api/cart", "offline")

        with pytest.raises(CartApiTransportException):
            await store.load()

        assert store.get_total_count() == 2
        assert store.is_loading is False

    @pytest.mark.asyncio
    async def test_subscribers_are_notified(self, store):
        seen = []
        unsubscribe = store.subscribe(lambda s: seen.append(s.get_total_count()))

        await store.load()
        unsubscribe()
        await store.load()

        assert seen == [2]


class TestAddLine:

    @pytest.mark.asyncio
    async def test_existing_line_is_incremented_optimistically(self, store, api_client):
        release = asyncio.Event()

        async def slow_add(product_id, quantity):
            await release.wait()
            raise _server_error()

        api_client.add_to_cart.side_effect = slow_add

        task = asyncio.ensure_future(store.add_line(1, 1))
        await asyncio.sleep(0)
        assert store.get_line(1).quantity == "3"
        assert store.is_mutating is True

        release.set()
        with pytest.raises(CartSyncException):
            await task

        # Server never applied the POST: reload restores "2"
        assert store.get_line(1).quantity == "2"
        assert store.is_mutating is False

    @pytest.mark.asyncio
    async def test_decimal_increment_has_no_float_drift(self, store, api_client):
        release = asyncio.Event()

        async def slow_add(product_id, quantity):
            await release.wait()

        api_client.add_to_cart.side_effect = slow_add

        task = asyncio.ensure_future(store.add_line(2, "0.1"))
        await asyncio.sleep(0)
        assert store.get_line(2).quantity == "1.6"

        release.set()
        await task

    @pytest.mark.asyncio
    async def test_new_line_appears_only_after_server_confirms(self, store, api_client, server_lines, make_line):
        release = asyncio.Event()

        async def slow_add(product_id, quantity):
            await release.wait()
            server_lines.append(make_line(3, product_id, "1"))

        api_client.add_to_cart.side_effect = slow_add
        on_success = MagicMock()

        task = asyncio.ensure_future(store.add_line(3, 1, on_success=on_success))
        await asyncio.sleep(0)
        assert store.get_total_count() == 2

        release.set()
        await task

        assert store.get_total_count() == 3
        assert store.find_line_by_product(3).product is not None
        on_success.assert_called_once_with()

    @pytest.mark.asyncio
    async def test_failed_reload_after_add_still_succeeds(self, store, api_client):
        api_client.add_to_cart.return_value = CartItemDTO(id=1, product_id=1, quantity="4")
        api_client.get_cart.side_effect = CartApiTransportException("GET", "/api/cart", "offline")
        on_success = MagicMock()

        await store.add_line(1, 1, on_success=on_success)

        # The server applied the add, so no error and its quantity wins
        on_success.assert_called_once_with()
        assert store.get_line(1).quantity == "4"
        assert store.is_loading is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("quantity", [0, -1, "abc"])
    async def test_invalid_quantity_rejected_before_anything(self, store, api_client, quantity):
        with pytest.raises(InvalidQuantityException):
            await store.add_line(1, quantity)

        api_client.add_to_cart.assert_not_awaited()
        api_client.get_cart.assert_not_awaited()
        assert store.get_line(1).quantity == "2"


class TestRemoveAndClear:

    @pytest.mark.asyncio
    async def test_removal_then_failure_restores_line(self, store, api_client):
        release = asyncio.Event()

        async def slow_remove(line_id):
            await release.wait()
            raise CartApiTransportException("DELETE", f"/api/cart/{line_id}", "timeout")

        api_client.remove_line.side_effect = slow_remove

        task = asyncio.ensure_future(store.remove_line(1))
        await asyncio.sleep(0)
        assert store.get_total_count() == 1

        release.set()
        with pytest.raises(CartSyncException) as exc_info:
            await task

        assert isinstance(exc_info.value.cause, CartApiTransportException)
        assert store.get_total_count() == 2

    @pytest.mark.asyncio
    async def test_remove_success_does_not_reload(self, store, api_client):
        await store.remove_line(2)

        assert store.get_line(2) is None
        api_client.remove_line.assert_awaited_once_with(2)
        api_client.get_cart.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_clear_failure_reloads(self, store, api_client):
        api_client.clear_cart.side_effect = _server_error()

        with pytest.raises(CartSyncException):
            await store.clear()

        assert store.get_total_count() == 2

    @pytest.mark.asyncio
    async def test_clear_success(self, store):
        await store.clear()

        assert store.lines == []


class TestUpdateQuantity:

    @pytest.mark.asyncio
    async def test_update_sets_quantity(self, store, api_client):
        await store.update_quantity(2, "2.25")

        assert store.get_line(2).quantity == "2.25"
        api_client.update_quantity.assert_awaited_once_with(2, Decimal("2.25"))

    @pytest.mark.asyncio
    async def test_zero_quantity_removes_line(self, store, api_client):
        await store.update_quantity(1, 0)

        assert store.get_line(1) is None
        api_client.remove_line.assert_awaited_once_with(1)
        api_client.update_quantity.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_line(self, store):
        with pytest.raises(CartLineNotFoundException):
            await store.update_quantity(99, 1)

    @pytest.mark.asyncio
    async def test_failure_reloads(self, store, api_client):
        api_client.update_quantity.side_effect = _server_error()

        with pytest.raises(CartSyncException):
            await store.update_quantity(1, 5)

        assert store.get_line(1).quantity == "2"

    @pytest.mark.asyncio
    async def test_newer_update_supersedes_older_failing_one(self, store, api_client):
        release_first = asyncio.Event()

        async def update(line_id, quantity):
            if quantity == Decimal(4):
                await release_first.wait()
                raise _server_error()
            return CartItemDTO(id=line_id, product_id=line_id, quantity=quantity)

        api_client.update_quantity.side_effect = update

        first = asyncio.ensure_future(store.update_quantity(1, 4))
        await asyncio.sleep(0)
        assert store.get_line(1).quantity == "4"

        second = asyncio.ensure_future(store.update_quantity(1, 6))
        await asyncio.sleep(0)
        assert store.get_line(1).quantity == "6"

        release_first.set()
        await asyncio.gather(first, second)

        # The older failure neither rolls back nor reloads over the newer intent
        assert store.get_line(1).quantity == "6"
        assert [c.args[1] for c in api_client.update_quantity.await_args_list] == [Decimal(4), Decimal(6)]
        api_client.get_cart.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_one_request_in_flight_and_server_ends_on_newest(self, store, api_client):
        gates = {Decimal(5): asyncio.Event(), Decimal(7): asyncio.Event()}
        server = {"quantity": None, "in_flight": 0, "max_in_flight": 0}

        async def update(line_id, quantity):
            server["in_flight"] += 1
            server["max_in_flight"] = max(server["max_in_flight"], server["in_flight"])
            await gates[quantity].wait()
            server["quantity"] = quantity
            server["in_flight"] -= 1
            return CartItemDTO(id=line_id, product_id=line_id, quantity=quantity)

        api_client.update_quantity.side_effect = update

        older = asyncio.ensure_future(store.update_quantity(1, 5))
        await asyncio.sleep(0)
        newer = asyncio.ensure_future(store.update_quantity(1, 7))
        await asyncio.sleep(0)
        assert api_client.update_quantity.await_count == 1

        # Newer gate opens first, the older request still settles first
        gates[Decimal(7)].set()
        gates[Decimal(5)].set()
        await asyncio.gather(older, newer)

        assert server["max_in_flight"] == 1
        assert server["quantity"] == Decimal(7)
        assert store.get_line(1).quantity == "7"

    @pytest.mark.asyncio
    async def test_intermediate_quantities_are_skipped(self, store, api_client):
        release = asyncio.Event()

        async def update(line_id, quantity):
            await release.wait()
            return CartItemDTO(id=line_id, product_id=line_id, quantity=quantity)

        api_client.update_quantity.side_effect = update

        tasks = [asyncio.ensure_future(store.update_quantity(1, q)) for q in (3, 4, 5)]
        await asyncio.sleep(0)
        release.set()
        await asyncio.gather(*tasks)

        assert [c.args[1] for c in api_client.update_quantity.await_args_list] == [Decimal(3), Decimal(5)]
        assert store.get_line(1).quantity == "5"

    @pytest.mark.asyncio
    async def test_remove_drops_queued_quantity(self, store, api_client):
        release = asyncio.Event()

        async def update(line_id, quantity):
            await release.wait()
            return CartItemDTO(id=line_id, product_id=line_id, quantity=quantity)

        api_client.update_quantity.side_effect = update

        pending = asyncio.ensure_future(store.update_quantity(1, 3))
        queued = asyncio.ensure_future(store.update_quantity(1, 4))
        await asyncio.sleep(0)
        await store.remove_line(1)
        release.set()
        await asyncio.gather(pending, queued)

        assert store.get_line(1) is None
        assert api_client.update_quantity.await_count == 1


class TestTotals:

    @pytest.mark.asyncio
    async def test_count_is_distinct_lines(self, store):
        assert store.get_total_count() == 2

    @pytest.mark.asyncio
    async def test_subtotal_and_total(self, store, default_tiers):
        # 2 x 5000 + 1.5 x 2000
        assert store.get_subtotal() == Decimal(13000)

        totals = store.get_total(default_tiers, 3500)

        assert totals.delivery_fee == Decimal(3500)
        assert totals.total == Decimal(16500)
