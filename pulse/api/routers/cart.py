# pulse/api/routers/cart.py
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from pulse.api.deps import get_db
from pulse.domain.owner import resolve_owner
from pulse.domain.schemas import (
    CartAddIn,
    CartClearIn,
    CartMergeIn,
    CartOut,
    CartUpdateIn,
    Envelope,
)
from pulse.services.cart_service import CartService

router = APIRouter(prefix="/api/cart", tags=["cart"])


def get_service(db: Session):
    return CartService(db)


@router.get("", response_model=Envelope[CartOut])
def get_cart(
    user_id: Optional[int] = Query(None, gt=0),
    session_id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    owner = resolve_owner(user_id, session_id)
    return {"success": True, "data": get_service(db).get_cart(owner)}


@router.post("/add", response_model=Envelope[CartOut])
def add_item(payload: CartAddIn, db: Session = Depends(get_db)):
    owner = resolve_owner(payload.user_id, payload.session_id)
    cart = get_service(db).add_item(owner, payload.band_id, payload.quantity)
    return {"success": True, "data": cart, "message": "Item added to cart"}


@router.put("/update", response_model=Envelope[CartOut])
def update_item(payload: CartUpdateIn, db: Session = Depends(get_db)):
    cart = get_service(db).update_item(payload.cart_item_id, payload.quantity)
    message = "Item removed from cart" if payload.quantity == 0 else "Cart updated"
    return {"success": True, "data": cart, "message": message}


@router.delete("/remove/{cart_item_id}", response_model=Envelope[CartOut])
def remove_item(cart_item_id: int, db: Session = Depends(get_db)):
    cart = get_service(db).remove_item(cart_item_id)
    return {"success": True, "data": cart, "message": "Item removed from cart"}


@router.post("/clear", response_model=Envelope[CartOut])
def clear_cart(payload: CartClearIn, db: Session = Depends(get_db)):
    cart = get_service(db).clear(payload.cart_id)
    return {"success": True, "data": cart, "message": "Cart cleared"}


@router.post("/merge", response_model=Envelope[CartOut])
def merge_carts(payload: CartMergeIn, db: Session = Depends(get_db)):
    result = get_service(db).merge(payload.user_id, payload.session_id)
    message = "Cart merged successfully" if result["merged"] else "No guest cart to merge"
    return {"success": True, "data": result["cart"], "message": message}
