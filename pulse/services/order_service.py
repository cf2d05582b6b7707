# pulse/services/order_service.py
import secrets
import time
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from pulse.data.database import unit_of_work
from pulse.data.models.order import OrderModel
from pulse.data.models.order_item import OrderItemModel
from pulse.domain.errors import ConflictError, NotFoundError, OutOfStockError, ValidationError
from pulse.domain.schemas import Pagination, paginate
from pulse.repos.band_repo import BandRepo
from pulse.repos.cart_repo import CartRepo
from pulse.repos.order_repo import OrderRepo
from pulse.repos.user_repo import UserRepo
from pulse.services.notification_service import NotificationService
from pulse.utils.logging import get_logger

logger = get_logger(__name__)

CENT = Decimal("0.01")

PENDING = "pending"
PROCESSING = "processing"
SHIPPED = "shipped"
DELIVERED = "delivered"
CANCELLED = "cancelled"

#lifecycle order, also the order of the stats breakdown
STATUSES = [PENDING, PROCESSING, SHIPPED, DELIVERED, CANCELLED]
FORWARD_FLOW = [PENDING, PROCESSING, SHIPPED, DELIVERED]
TERMINAL = {DELIVERED, CANCELLED}

DEFAULT_PAYMENT_METHOD = "credit_card"
DEFAULT_CANCEL_REASON = "Customer request"
ADMIN_CANCEL_REASON = "Cancelled by administrator"
RECENT_ORDERS_LIMIT = 10
STATS_MONTHS = 6


def generate_order_number() -> str:
    """PU-<epoch millis>-<6 uppercase hex>"""
    return f"PU-{int(time.time() * 1000)}-{secrets.token_hex(3).upper()}"


def order_summary(order: OrderModel) -> Dict[str, Any]:
    return {
        "id": order.id,
        "order_number": order.order_number,
        "user_id": order.user_id,
        "status": order.status,
        "total_amount": order.total_amount,
        "item_count": sum(i.quantity for i in order.items),
        "created_at": order.created_at,
    }


class OrderService:
    """
    Order domain, kept apart from CartService.
    Checkout, cancellation and status changes each run as one transaction.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = OrderRepo(db)
        self.carts = CartRepo(db)
        self.bands = BandRepo(db)
        self.users = UserRepo(db)
        self.notification_service = NotificationService()

    # =====================================================
    # QUERY
    # =====================================================
    def get_order(self, order_number: str) -> Dict[str, Any]:
        order = self.repo.get_by_number(order_number)
        if not order:
            raise NotFoundError("Order not found")
        return self._view(order)

    def list_orders_for_user(self, user_id: int, limit: int = 10, offset: int = 0) -> Tuple[List[Dict[str, Any]], Pagination]:
        orders = self.repo.list_for_user(user_id, limit, offset)
        total = self.repo.count_for_user(user_id)
        return [self._view(o) for o in orders], paginate(total, limit, offset)

    def _view(self, order: OrderModel) -> Dict[str, Any]:
        return {
            "id": order.id,
            "order_number": order.order_number,
            "user_id": order.user_id,
            "status": order.status,
            "total_amount": order.total_amount,
            "shipping_address": order.shipping_address,
            "billing_address": order.billing_address,
            "payment_method": order.payment_method,
            "notes": order.notes,
            "tracking_number": order.tracking_number,
            "admin_notes": order.admin_notes,
            "cancellation_reason": order.cancellation_reason,
            "created_at": order.created_at,
            "updated_at": order.updated_at,
            "items": [
                {
                    "id": i.id,
                    "band_id": i.band_id,
                    "quantity": i.quantity,
                    "unit_price": i.unit_price,
                    "name": i.band.name,
                    "image_url": i.band.image_url,
                    "color": i.band.color,
                    "material": i.band.material,
                }
                for i in order.items
            ],
        }

    # =====================================================
    # COMMANDS
    # =====================================================
    def create_order(
        self,
        cart_id: int,
        shipping_address: Dict[str, Any],
        billing_address: Optional[Dict[str, Any]] = None,
        payment_method: Optional[str] = None,
        user_id: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Use case: checkout.

        1. load cart lines with live band price and stock
        2. validate every line against stock before writing anything
        3. insert the order and its items (unit price snapshot)
        4. decrement stock with a conditional update per band
        5. empty the cart
        Everything commits together or not at all.
        """
        if not cart_id or not shipping_address:
            raise ValidationError("Cart ID and shipping address are required")

        with unit_of_work(self.db):
            cart = self.carts.get_cart(cart_id)
            lines = self.carts.get_active_lines(cart_id) if cart else []
            if not lines:
                raise ValidationError("Cart is empty")

            for item, band in lines:
                if item.quantity > band.stock:
                    raise OutOfStockError(
                        f"Insufficient stock for {band.name}. Only {band.stock} available.",
                        band.stock,
                    )

            total = sum((band.price * item.quantity for item, band in lines), Decimal("0.00"))

            order = OrderModel(
                order_number=generate_order_number(),
                user_id=user_id if user_id is not None else cart.user_id,
                status=PENDING,
                total_amount=total.quantize(CENT),
                shipping_address=shipping_address,
                billing_address=billing_address or shipping_address,
                payment_method=payment_method or DEFAULT_PAYMENT_METHOD,
                notes=notes,
            )
            for item, band in lines:
                order.items.append(
                    OrderItemModel(band_id=band.id, quantity=item.quantity, unit_price=band.price)
                )
            self.repo.add_order(order)

            for item, band in lines:
                #another checkout may have taken the stock since the check above
                if self.bands.decrement_stock(band.id, item.quantity) == 0:
                    self.db.refresh(band)
                    raise OutOfStockError(
                        f"Insufficient stock for {band.name}. Only {band.stock} available.",
                        band.stock,
                    )

            self.carts.clear_items(cart_id)
            self.carts.touch_cart(cart_id)

        logger.info(f"Order {order.order_number} created from cart {cart_id}, total {order.total_amount}")

        view = self._view(order)
        self._queue_confirmation(view)
        return view

    def _queue_confirmation(self, view: Dict[str, Any]):
        email = view["shipping_address"].get("email")
        if not email and view["user_id"] is not None:
            user = self.users.get_user(view["user_id"])
            email = user.email if user else None
        if not email:
            return

        items = [
            {"name": i["name"], "quantity": i["quantity"], "unit_price": f"{i['unit_price']:.2f}"}
            for i in view["items"]
        ]
        self.notification_service.send_order_confirmation(
            email, view["order_number"], f"{view['total_amount']:.2f}", items
        )

    def update_status(
        self,
        order_number: str,
        status: str,
        tracking_number: Optional[str] = None,
        admin_notes: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Forward-only along pending -> processing -> shipped -> delivered.
        Re-applying the current status only updates tracking / notes.
        Cancelling goes through cancel_order so stock is restored.
        """
        if status not in STATUSES:
            raise ValidationError(f"Invalid status. Must be one of: {', '.join(STATUSES)}")

        if status == CANCELLED:
            return self.cancel_order(
                order_number,
                reason=admin_notes or ADMIN_CANCEL_REASON,
                tracking_number=tracking_number,
                admin_notes=admin_notes,
            )

        with unit_of_work(self.db):
            order = self.repo.get_by_number(order_number)
            if not order:
                raise NotFoundError("Order not found")

            current = order.status
            if current != status:
                if current in TERMINAL:
                    raise ConflictError(f"Cannot change status of a {current} order")
                if FORWARD_FLOW.index(status) < FORWARD_FLOW.index(current):
                    raise ConflictError(f"Cannot move order from {current} back to {status}")

            values = {"status": status, "updated_at": datetime.now(timezone.utc)}
            if tracking_number is not None:
                values["tracking_number"] = tracking_number
            if admin_notes is not None:
                values["admin_notes"] = admin_notes

            if self.repo.update_if_status(order.id, current, values) == 0:
                raise ConflictError("Order was modified by another request")

        logger.info(f"Order {order_number} status {current} -> {status}")
        return self.get_order(order_number)

    def cancel_order(
        self,
        order_number: str,
        reason: Optional[str] = None,
        tracking_number: Optional[str] = None,
        admin_notes: Optional[str] = None,
    ) -> Dict[str, Any]:
        with unit_of_work(self.db):
            order = self.repo.get_by_number(order_number)
            if not order:
                raise NotFoundError("Order not found")

            if order.status == CANCELLED:
                raise ConflictError("Order is already cancelled")
            if order.status == DELIVERED:
                raise ConflictError("Delivered orders cannot be cancelled")

            values = {
                "status": CANCELLED,
                "cancellation_reason": reason or DEFAULT_CANCEL_REASON,
                "updated_at": datetime.now(timezone.utc),
            }
            if tracking_number is not None:
                values["tracking_number"] = tracking_number
            if admin_notes is not None:
                values["admin_notes"] = admin_notes

            #guarded on the status we just read, so stock is restored at most once
            if self.repo.update_if_status(order.id, order.status, values) == 0:
                raise ConflictError("Order is already cancelled")

            for item in order.items:
                self.bands.restore_stock(item.band_id, item.quantity)

        logger.info(f"Order {order_number} cancelled, stock restored for {len(order.items)} lines")
        return self.get_order(order_number)

    # =====================================================
    # STATS
    # =====================================================
    def get_statistics(self) -> Dict[str, Any]:
        counts = {status: 0 for status in STATUSES}
        total_revenue = Decimal("0.00")
        delivered_revenue = Decimal("0.00")

        for status, count, amount in self.repo.status_totals():
            amount = Decimal(str(amount))
            counts[status] = counts.get(status, 0) + count
            total_revenue += amount
            if status == DELIVERED:
                delivered_revenue += amount

        total_orders = sum(counts.values())
        average = total_revenue / total_orders if total_orders else Decimal("0.00")

        return {
            "status_counts": counts,
            "total_orders": total_orders,
            "total_revenue": total_revenue.quantize(CENT),
            "delivered_revenue": delivered_revenue.quantize(CENT),
            "average_order_value": average.quantize(CENT),
            "recent_orders": [order_summary(o) for o in self.repo.recent(RECENT_ORDERS_LIMIT)],
            "monthly_revenue": self._monthly_revenue(),
        }

    def _monthly_revenue(self) -> List[Dict[str, Any]]:
        #current month plus the five before it, newest first
        now = datetime.now(timezone.utc)
        year, month = now.year, now.month - (STATS_MONTHS - 1)
        while month <= 0:
            month += 12
            year -= 1
        since = datetime(year, month, 1, tzinfo=timezone.utc)

        buckets: Dict[str, Dict[str, Any]] = {}
        for order in self.repo.created_since(since):
            key = order.created_at.strftime("%Y-%m")
            bucket = buckets.setdefault(key, {"month": key, "orders": 0, "revenue": Decimal("0.00")})
            bucket["orders"] += 1
            bucket["revenue"] += order.total_amount

        return list(buckets.values())
