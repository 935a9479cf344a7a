import asyncio
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from qrmenu.core.exceptions import (
    InvalidTransitionError,
    NotFoundError,
    OrderSubmissionError,
    ValidationFailedError,
)
from qrmenu.database import async_session_maker
from qrmenu.models import Order, OrderItem, OrderStatus, PaymentMethod
from qrmenu.services.ordering import Cart, OrderWorkflow
from qrmenu.services.ordering.cart import ProductSnapshot
from qrmenu.services.realtime import BaseOrderFeed, MemoryOrderFeed


class BrokenFeed(MemoryOrderFeed):
    async def publish(self, event):
        raise ConnectionError("redis is down")


@pytest.fixture
async def pizza_bar(make_owner, make_product, make_table):
    owner = await make_owner()
    margherita = await make_product(owner, "Margherita", 800)
    lasagna = await make_product(owner, "Lasagna", 1200)
    table = await make_table(owner, 4)
    return owner, table, margherita, lasagna


async def test_submit_writes_order_and_items(session, pizza_bar):
    owner, table, margherita, lasagna = pizza_bar
    cart = Cart.from_selection([margherita, lasagna], {margherita.id: 2, lasagna.id: 1})

    order = await OrderWorkflow(session, MemoryOrderFeed()).submit(table, cart, PaymentMethod.CASH)

    assert order.total == Decimal("2800")
    assert order.status == OrderStatus.PENDING
    assert order.table_number == 4
    assert order.table_id == table.id

    stored = await OrderWorkflow(session).get_order(owner.id, order.id)
    assert len(stored.items) == 2
    assert [(i.product_name, i.quantity, i.unit_price) for i in stored.items] == [
        ("Margherita", 2, Decimal("800")),
        ("Lasagna", 1, Decimal("1200")),
    ]
    assert stored.total == sum(i.unit_price * i.quantity for i in stored.items)


async def test_submit_publishes_event_for_the_owner(session, pizza_bar):
    owner, table, margherita, _ = pizza_bar
    feed = MemoryOrderFeed()
    received = []

    async def handler(event):
        received.append(event)

    await feed.subscribe(owner.id, handler)
    cart = Cart.from_selection([margherita], {margherita.id: 1})
    order = await OrderWorkflow(session, feed).submit(table, cart)

    assert len(received) == 1
    assert received[0].owner_id == owner.id
    assert received[0].order.id == order.id
    assert received[0].order.table_number == 4


async def test_empty_cart_is_rejected_before_any_write(session, pizza_bar):
    _, table, _, _ = pizza_bar

    with pytest.raises(ValidationFailedError):
        await OrderWorkflow(session, MemoryOrderFeed()).submit(table, Cart())

    assert await session.scalar(select(func.count(Order.id))) == 0


async def test_failed_item_write_leaves_no_order(session, pizza_bar):
    _, table, _, _ = pizza_bar
    cart = Cart()
    # An item without a name violates NOT NULL when the items are inserted
    cart.add(ProductSnapshot(id="ghost", name=None, price=Decimal("100")))

    with pytest.raises(OrderSubmissionError):
        await OrderWorkflow(session, MemoryOrderFeed()).submit(table, cart)

    assert await session.scalar(select(func.count(Order.id))) == 0
    assert await session.scalar(select(func.count(OrderItem.id))) == 0


async def test_feed_outage_does_not_fail_the_order(session, pizza_bar):
    owner, table, margherita, _ = pizza_bar
    cart = Cart.from_selection([margherita], {margherita.id: 1})

    order = await OrderWorkflow(session, BrokenFeed()).submit(table, cart)

    assert (await OrderWorkflow(session).get_order(owner.id, order.id)).id == order.id


async def test_catalog_edits_do_not_rewrite_order_history(session, pizza_bar):
    owner, table, margherita, _ = pizza_bar
    cart = Cart.from_selection([margherita], {margherita.id: 1})
    order = await OrderWorkflow(session, MemoryOrderFeed()).submit(table, cart)

    margherita.name = "Margherita XL"
    margherita.price = Decimal("1500")
    await session.commit()

    stored = await OrderWorkflow(session).get_order(owner.id, order.id)
    assert stored.items[0].product_name == "Margherita"
    assert stored.items[0].unit_price == Decimal("800")
    assert stored.total == Decimal("800")


async def test_status_flow(session, pizza_bar):
    owner, table, margherita, _ = pizza_bar
    workflow = OrderWorkflow(session, MemoryOrderFeed())
    order = await workflow.submit(table, Cart.from_selection([margherita], {margherita.id: 1}))

    for target in (OrderStatus.CONFIRMED, OrderStatus.PREPARING, OrderStatus.READY, OrderStatus.COMPLETED):
        order = await workflow.transition(owner.id, order.id, target)
        assert order.status == target


async def test_invalid_transition_leaves_status_unchanged(session, pizza_bar):
    owner, table, margherita, _ = pizza_bar
    workflow = OrderWorkflow(session, MemoryOrderFeed())
    order = await workflow.submit(table, Cart.from_selection([margherita], {margherita.id: 1}))

    with pytest.raises(InvalidTransitionError):
        await workflow.transition(owner.id, order.id, OrderStatus.COMPLETED)

    assert (await workflow.get_order(owner.id, order.id)).status == OrderStatus.PENDING


async def test_repeating_a_status_is_a_no_op(session, pizza_bar):
    owner, table, margherita, _ = pizza_bar
    workflow = OrderWorkflow(session, MemoryOrderFeed())
    order = await workflow.submit(table, Cart.from_selection([margherita], {margherita.id: 1}))

    await workflow.transition(owner.id, order.id, OrderStatus.CONFIRMED)
    again = await workflow.transition(owner.id, order.id, OrderStatus.CONFIRMED)

    assert again.status == OrderStatus.CONFIRMED


async def test_concurrent_updates_of_one_order_are_serialized(session, pizza_bar):
    owner, table, margherita, _ = pizza_bar
    workflow = OrderWorkflow(session, MemoryOrderFeed())
    order = await workflow.submit(table, Cart.from_selection([margherita], {margherita.id: 1}))
    await workflow.transition(owner.id, order.id, OrderStatus.CONFIRMED)

    async def move_to(target):
        async with async_session_maker() as db:
            updated = await OrderWorkflow(db, MemoryOrderFeed()).transition(owner.id, order.id, target)
            return updated.status

    # Both are valid from confirmed, but not from each other's result
    results = await asyncio.gather(
        move_to(OrderStatus.PREPARING),
        move_to(OrderStatus.CANCELLED),
        return_exceptions=True,
    )

    assert results[0] == OrderStatus.PREPARING
    assert isinstance(results[1], InvalidTransitionError)
    stored = await workflow.get_order(owner.id, order.id)
    assert stored.status == OrderStatus.PREPARING


async def test_orders_are_scoped_to_their_owner(session, make_owner, pizza_bar):
    owner, table, margherita, _ = pizza_bar
    other = await make_owner(email="other@cafe.rs", restaurant_name="Cafe")
    workflow = OrderWorkflow(session, MemoryOrderFeed())
    order = await workflow.submit(table, Cart.from_selection([margherita], {margherita.id: 1}))

    with pytest.raises(NotFoundError):
        await workflow.get_order(other.id, order.id)
    with pytest.raises(NotFoundError):
        await workflow.transition(other.id, order.id, OrderStatus.CONFIRMED)

    assert await workflow.recent_orders(other.id) == []
    assert [o.id for o in await workflow.recent_orders(owner.id)] == [order.id]


async def test_recent_orders_newest_first_with_limit(session, pizza_bar):
    owner, table, margherita, _ = pizza_bar
    workflow = OrderWorkflow(session, MemoryOrderFeed())
    ids = []
    for _ in range(3):
        order = await workflow.submit(table, Cart.from_selection([margherita], {margherita.id: 1}))
        ids.append(order.id)

    recent = await workflow.recent_orders(owner.id, limit=2)

    assert [o.id for o in recent] == [ids[2], ids[1]]


def test_feed_interface():
    assert issubclass(MemoryOrderFeed, BaseOrderFeed)
