import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from qrmenu.models import OrderStatus, PaymentMethod
from qrmenu.schemas import OrderEvent, OrderSummary
from qrmenu.services.dashboard import DashboardView

NOW = datetime(2026, 3, 14, 12, 0, tzinfo=timezone.utc)


def summary(owner_id="u1", table_number=4, total="1000", status=OrderStatus.PENDING, created_at=NOW):
    return OrderSummary(
        id=str(uuid.uuid4()),
        owner_id=owner_id,
        table_id=None,
        table_number=table_number,
        status=status,
        payment_method=PaymentMethod.CASH,
        customer_note=None,
        total=Decimal(total),
        created_at=created_at,
        updated_at=created_at,
    )


def test_load_sorts_newest_first_and_applies_limit():
    older = summary(created_at=NOW - timedelta(hours=2))
    newest = summary(created_at=NOW)
    middle = summary(created_at=NOW - timedelta(hours=1))

    view = DashboardView("u1", limit=2, tz="UTC")
    view.load([older, newest, middle])

    assert [o.id for o in view.orders] == [newest.id, middle.id]


def test_new_order_is_prepended_with_notification():
    view = DashboardView("u1", tz="UTC")
    view.load([summary(created_at=NOW - timedelta(minutes=5))])

    created = summary(table_number=7, total="2800")
    notification = view.on_order_created(OrderEvent(owner_id="u1", order=created))

    assert view.orders[0].id == created.id
    assert notification.message == "New order — Table 7"
    assert view.drain_notifications() == [notification]
    assert view.drain_notifications() == []
    assert view.stats(NOW).today_revenue == Decimal("3800")


def test_events_for_another_owner_are_ignored():
    view = DashboardView("u1", tz="UTC")

    assert view.on_order_created(OrderEvent(owner_id="u2", order=summary(owner_id="u2"))) is None
    assert view.orders == []


def test_duplicate_events_are_ignored():
    view = DashboardView("u1", tz="UTC")
    created = summary()
    event = OrderEvent(owner_id="u1", order=created)

    view.on_order_created(event)
    assert view.on_order_created(event) is None
    assert len(view.orders) == 1


def test_hide_finished_toggle_keeps_aggregates():
    done = summary(total="1000", status=OrderStatus.COMPLETED)
    waiting = summary(total="500", status=OrderStatus.PENDING)
    view = DashboardView("u1", tz="UTC")
    view.load([done, waiting])

    before = view.stats(NOW)
    assert view.toggle_hide_finished() is True

    assert [o.id for o in view.visible()] == [waiting.id]
    assert view.stats(NOW) == before


def test_apply_status_updates_loaded_order():
    pending = summary()
    view = DashboardView("u1", tz="UTC")
    view.load([pending])

    assert view.apply_status(pending.id, OrderStatus.CONFIRMED)
    assert view.orders[0].status == OrderStatus.CONFIRMED
    assert not view.apply_status("missing", OrderStatus.CONFIRMED)
