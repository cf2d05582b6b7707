import re
from decimal import Decimal

import pytest

from pulse.data.database import build_session_factory
from pulse.data.models import OrderModel
from pulse.domain.errors import ConflictError, NotFoundError, OutOfStockError, ValidationError
from pulse.domain.owner import GuestOwner, UserOwner
from pulse.repos.band_repo import BandRepo
from pulse.services.cart_service import CartService
from pulse.services.order_service import OrderService

from tests.conftest import ADDRESS

GUEST = GuestOwner(session_id="guest-xyz")


@pytest.fixture
def carts(db):
    return CartService(db)


@pytest.fixture
def orders(db):
    return OrderService(db)


def _checkout(carts, orders, band, quantity, owner=GUEST, **kwargs):
    cart = carts.add_item(owner, band.id, quantity)
    return orders.create_order(cart["id"], ADDRESS, **kwargs)


def test_checkout_creates_pending_order_decrements_stock_and_empties_cart(carts, orders, make_band, db):
    band = make_band(stock=5)
    cart = carts.add_item(GUEST, band.id, 3)

    order = orders.create_order(cart["id"], ADDRESS)

    assert order["status"] == "pending"
    assert re.fullmatch(r"PU-\d{13}-[0-9A-F]{6}", order["order_number"])
    assert order["total_amount"] == Decimal("149.97")
    assert order["payment_method"] == "credit_card"
    assert order["billing_address"] == order["shipping_address"] == ADDRESS
    assert [(i["band_id"], i["quantity"], i["unit_price"]) for i in order["items"]] == [
        (band.id, 3, Decimal("49.99"))
    ]

    db.refresh(band)
    assert band.stock == 2
    assert carts.get_cart(GUEST)["items"] == []


def test_checkout_keeps_explicit_billing_and_payment(carts, orders, make_band):
    band = make_band(stock=5)
    billing = dict(ADDRESS, line1="2 Other Street")

    order = _checkout(carts, orders, band, 1, billing_address=billing, payment_method="apple_pay", notes="Gift")

    assert order["billing_address"]["line1"] == "2 Other Street"
    assert order["payment_method"] == "apple_pay"
    assert order["notes"] == "Gift"


def test_user_cart_order_is_attributed_to_user(carts, orders, make_band):
    band = make_band(stock=5)

    order = _checkout(carts, orders, band, 1, owner=UserOwner(user_id=3))

    assert order["user_id"] == 3


def test_checkout_of_empty_or_missing_cart_fails(carts, orders, make_band):
    band = make_band(stock=5)
    cart = carts.add_item(GUEST, band.id, 1)
    carts.clear(cart["id"])

    with pytest.raises(ValidationError, match="Cart is empty"):
        orders.create_order(cart["id"], ADDRESS)
    with pytest.raises(ValidationError, match="Cart is empty"):
        orders.create_order(9999, ADDRESS)


def test_checkout_requires_shipping_address(orders):
    with pytest.raises(ValidationError):
        orders.create_order(1, {})


def test_checkout_over_stock_creates_nothing(carts, orders, make_band, db):
    band = make_band(name="Nike Trail Band", stock=4)
    #each add is within stock, the combined line is not
    carts.add_item(GUEST, band.id, 4)
    carts.add_item(GUEST, band.id, 4)
    cart = carts.add_item(GUEST, band.id, 2)

    with pytest.raises(OutOfStockError) as exc:
        orders.create_order(cart["id"], ADDRESS)

    assert exc.value.message == "Insufficient stock for Nike Trail Band. Only 4 available."
    assert exc.value.available == 4
    assert db.query(OrderModel).count() == 0
    db.refresh(band)
    assert band.stock == 4
    assert carts.get_cart(GUEST)["item_count"] == 10


def test_checkout_rolls_back_when_a_concurrent_decrement_loses(carts, orders, make_band, db, monkeypatch):
    first = make_band(name="First", stock=5)
    second = make_band(name="Second", stock=5)
    carts.add_item(GUEST, first.id, 2)
    cart = carts.add_item(GUEST, second.id, 2)

    real_decrement = BandRepo.decrement_stock

    def racing_decrement(self, band_id, quantity):
        if band_id == second.id:
            return 0
        return real_decrement(self, band_id, quantity)

    monkeypatch.setattr(BandRepo, "decrement_stock", racing_decrement)

    with pytest.raises(OutOfStockError):
        orders.create_order(cart["id"], ADDRESS)

    assert db.query(OrderModel).count() == 0
    db.refresh(first)
    db.refresh(second)
    assert (first.stock, second.stock) == (5, 5)
    assert carts.get_cart(GUEST)["item_count"] == 4


def test_unit_price_is_a_snapshot(carts, orders, make_band, db):
    band = make_band(stock=5, price=Decimal("49.99"))
    order = _checkout(carts, orders, band, 1)

    band.price = Decimal("99.99")
    db.commit()

    again = orders.get_order(order["order_number"])
    assert again["items"][0]["unit_price"] == Decimal("49.99")
    assert again["total_amount"] == Decimal("49.99")


def test_get_unknown_order_is_not_found(orders):
    with pytest.raises(NotFoundError):
        orders.get_order("PU-0-000000")


def test_cancel_restores_stock_once(carts, orders, make_band, db):
    band = make_band(stock=5)
    order = _checkout(carts, orders, band, 3)

    cancelled = orders.cancel_order(order["order_number"])

    assert cancelled["status"] == "cancelled"
    assert cancelled["cancellation_reason"] == "Customer request"
    db.refresh(band)
    assert band.stock == 5

    with pytest.raises(ConflictError, match="already cancelled"):
        orders.cancel_order(order["order_number"])
    db.refresh(band)
    assert band.stock == 5


@pytest.mark.parametrize("status", ["processing", "shipped"])
def test_cancel_from_non_terminal_status(carts, orders, make_band, db, status):
    band = make_band(stock=5)
    order = _checkout(carts, orders, band, 2)
    if status == "shipped":
        orders.update_status(order["order_number"], "processing")
    orders.update_status(order["order_number"], status)

    orders.cancel_order(order["order_number"], reason="Changed my mind")

    db.refresh(band)
    assert band.stock == 5
    assert orders.get_order(order["order_number"])["cancellation_reason"] == "Changed my mind"


def test_cancel_delivered_order_is_conflict(carts, orders, make_band, db):
    band = make_band(stock=5)
    number = _checkout(carts, orders, band, 1)["order_number"]
    for status in ("processing", "shipped", "delivered"):
        orders.update_status(number, status)

    with pytest.raises(ConflictError, match="Delivered orders cannot be cancelled"):
        orders.cancel_order(number)
    db.refresh(band)
    assert band.stock == 4


def test_update_status_rejects_unknown_status(carts, orders, make_band):
    number = _checkout(carts, orders, make_band(stock=5), 1)["order_number"]

    with pytest.raises(ValidationError, match="Invalid status"):
        orders.update_status(number, "lost")


def test_update_status_is_forward_only(carts, orders, make_band):
    number = _checkout(carts, orders, make_band(stock=5), 1)["order_number"]
    orders.update_status(number, "shipped")

    with pytest.raises(ConflictError):
        orders.update_status(number, "pending")

    updated = orders.update_status(number, "shipped", tracking_number="1Z999", admin_notes="UPS")
    assert updated["status"] == "shipped"
    assert updated["tracking_number"] == "1Z999"
    assert updated["admin_notes"] == "UPS"


def test_update_status_cancelled_restores_stock(carts, orders, make_band, db):
    band = make_band(stock=5)
    number = _checkout(carts, orders, band, 2)["order_number"]

    order = orders.update_status(number, "cancelled")

    assert order["status"] == "cancelled"
    db.refresh(band)
    assert band.stock == 5

    with pytest.raises(ConflictError):
        orders.update_status(number, "processing")


def test_update_status_cancelled_keeps_tracking_and_notes(carts, orders, make_band):
    band = make_band(stock=5)
    number = _checkout(carts, orders, band, 1)["order_number"]
    orders.update_status(number, "shipped", tracking_number="1Z111")

    order = orders.update_status(
        number, "cancelled", tracking_number="1Z222", admin_notes="Returned to sender"
    )

    assert order["status"] == "cancelled"
    assert order["tracking_number"] == "1Z222"
    assert order["admin_notes"] == "Returned to sender"
    assert order["cancellation_reason"] == "Returned to sender"

    plain = _checkout(carts, orders, band, 1)["order_number"]
    order = orders.update_status(plain, "cancelled")
    assert order["cancellation_reason"] == "Cancelled by administrator"
    assert order["admin_notes"] is None
    assert order["tracking_number"] is None


def test_update_status_unknown_order(orders):
    with pytest.raises(NotFoundError):
        orders.update_status("PU-1-ABCDEF", "processing")


def test_stock_never_goes_negative(carts, orders, make_band, db):
    band = make_band(stock=3)
    first = _checkout(carts, orders, band, 3)

    with pytest.raises(OutOfStockError):
        carts.add_item(GUEST, band.id, 1)

    orders.cancel_order(first["order_number"])
    _checkout(carts, orders, band, 2)

    db.refresh(band)
    assert band.stock == 1


def test_list_orders_for_user_paginates_newest_first(carts, orders, make_band):
    band = make_band(stock=20)
    owner = UserOwner(user_id=5)
    numbers = [_checkout(carts, orders, band, 1, owner=owner)["order_number"] for _ in range(3)]
    _checkout(carts, orders, band, 1, owner=UserOwner(user_id=6))

    page, pagination = orders.list_orders_for_user(5, limit=2, offset=0)

    assert [o["order_number"] for o in page] == [numbers[2], numbers[1]]
    assert pagination.total == 3
    assert pagination.has_more is True

    page, pagination = orders.list_orders_for_user(5, limit=2, offset=2)
    assert [o["order_number"] for o in page] == [numbers[0]]
    assert pagination.has_more is False


def test_statistics(carts, orders, make_band):
    band = make_band(stock=20, price=Decimal("10.00"))
    delivered = _checkout(carts, orders, band, 2)["order_number"]
    for status in ("processing", "shipped", "delivered"):
        orders.update_status(delivered, status)
    cancelled = _checkout(carts, orders, band, 1)["order_number"]
    orders.cancel_order(cancelled)
    _checkout(carts, orders, band, 3)

    stats = orders.get_statistics()

    assert list(stats["status_counts"]) == ["pending", "processing", "shipped", "delivered", "cancelled"]
    assert stats["status_counts"] == {
        "pending": 1,
        "processing": 0,
        "shipped": 0,
        "delivered": 1,
        "cancelled": 1,
    }
    assert stats["total_orders"] == 3
    assert stats["total_revenue"] == Decimal("60.00")
    assert stats["delivered_revenue"] == Decimal("20.00")
    assert stats["average_order_value"] == Decimal("20.00")
    assert len(stats["recent_orders"]) == 3
    assert len(stats["monthly_revenue"]) == 1
    assert stats["monthly_revenue"][0]["orders"] == 3
    assert stats["monthly_revenue"][0]["revenue"] == Decimal("60.00")


def test_statistics_mix_fresh_and_reloaded_orders(carts, orders, make_band, engine):
    band = make_band(stock=10, price=Decimal("10.00"))
    #stays in the test session with the timestamp it was created with
    _checkout(carts, orders, band, 1)

    #committed elsewhere, so it is loaded back from the database
    other = build_session_factory(engine)()
    try:
        other.add(
            OrderModel(
                order_number="PU-1-AAAAAA",
                total_amount=Decimal("5.00"),
                shipping_address=ADDRESS,
                billing_address=ADDRESS,
            )
        )
        other.commit()
    finally:
        other.close()

    stats = orders.get_statistics()

    assert stats["total_orders"] == 2
    assert len(stats["monthly_revenue"]) == 1
    assert stats["monthly_revenue"][0]["orders"] == 2
    assert stats["monthly_revenue"][0]["revenue"] == Decimal("15.00")


def test_confirmation_email_is_queued_after_checkout(carts, orders, make_band, sent_emails):
    band = make_band(stock=5)

    order = _checkout(carts, orders, band, 1)

    assert len(sent_emails) == 1
    assert sent_emails[0]["to"] == ADDRESS["email"]
    assert order["order_number"] in sent_emails[0]["subject"]
