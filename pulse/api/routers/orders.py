# pulse/api/routers/orders.py
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from pulse.api.deps import get_current_user, get_db, require_admin
from pulse.domain.errors import ForbiddenError
from pulse.domain.schemas import (
    Envelope,
    OrderCancelIn,
    OrderCreate,
    OrderOut,
    OrderStatsOut,
    OrderStatusIn,
    PagedEnvelope,
)
from pulse.services.order_service import OrderService

router = APIRouter(prefix="/api/orders", tags=["orders"])


def get_service(db: Session):
    return OrderService(db)


@router.get("/stats/overview", response_model=Envelope[OrderStatsOut], dependencies=[Depends(require_admin)])
def order_statistics(db: Session = Depends(get_db)):
    return {"success": True, "data": get_service(db).get_statistics()}


@router.get("/user/{user_id}", response_model=PagedEnvelope[List[OrderOut]])
def list_user_orders(
    user_id: int,
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    claims: Dict[str, Any] = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """A user may only list their own orders."""
    if claims.get("user_id") != user_id:
        raise ForbiddenError("Access denied")

    orders, pagination = get_service(db).list_orders_for_user(user_id, limit, offset)
    return {"success": True, "data": orders, "pagination": pagination}


@router.get("/{order_number}", response_model=Envelope[OrderOut])
def get_order(order_number: str, db: Session = Depends(get_db)):
    return {"success": True, "data": get_service(db).get_order(order_number)}


@router.post("", response_model=Envelope[OrderOut], status_code=201)
def create_order(payload: OrderCreate, db: Session = Depends(get_db)):
    """Checkout: turns the cart into a pending order and empties the cart."""
    order = get_service(db).create_order(
        cart_id=payload.cart_id,
        shipping_address=payload.shipping_address.model_dump(exclude_none=True),
        billing_address=payload.billing_address.model_dump(exclude_none=True) if payload.billing_address else None,
        payment_method=payload.payment_method,
        user_id=payload.user_id,
        notes=payload.notes,
    )
    return {"success": True, "data": order, "message": "Order created successfully"}


@router.put("/{order_number}/status", response_model=Envelope[OrderOut], dependencies=[Depends(require_admin)])
def update_order_status(order_number: str, payload: OrderStatusIn, db: Session = Depends(get_db)):
    order = get_service(db).update_status(
        order_number,
        payload.status,
        tracking_number=payload.tracking_number,
        admin_notes=payload.admin_notes,
    )
    return {"success": True, "data": order, "message": f"Order status updated to {order['status']}"}


@router.post("/{order_number}/cancel", response_model=Envelope[OrderOut])
def cancel_order(order_number: str, payload: OrderCancelIn | None = None, db: Session = Depends(get_db)):
    reason = payload.reason if payload else None
    order = get_service(db).cancel_order(order_number, reason=reason)
    return {"success": True, "data": order, "message": "Order cancelled successfully"}
