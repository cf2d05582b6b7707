# pulse/repos/cart_repo.py
from datetime import datetime, timezone
from typing import Sequence

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from pulse.data.models.band import BandModel
from pulse.data.models.cart import CartModel
from pulse.data.models.cart_item import CartItemModel
from pulse.domain.owner import GuestOwner, Owner, UserOwner


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    #carts
    def get_cart(self, cart_id: int) -> CartModel | None:
        return self.db.get(CartModel, cart_id)

    def get_current_cart(self, owner: Owner) -> CartModel | None:
        """Most recently updated cart of the owner."""
        stmt = select(CartModel)
        if isinstance(owner, UserOwner):
            stmt = stmt.where(CartModel.user_id == owner.user_id)
        else:
            stmt = stmt.where(CartModel.session_id == owner.session_id)
        stmt = stmt.order_by(CartModel.updated_at.desc(), CartModel.id.desc()).limit(1)
        return self.db.execute(stmt).scalar_one_or_none()

    def create_cart(self, owner: Owner) -> CartModel:
        if isinstance(owner, GuestOwner):
            cart = CartModel(session_id=owner.session_id)
        else:
            cart = CartModel(user_id=owner.user_id)
        self.db.add(cart)
        self.db.flush()
        return cart

    def touch_cart(self, cart_id: int) -> int:
        result = self.db.execute(
            update(CartModel)
            .where(CartModel.id == cart_id)
            .values(updated_at=datetime.now(timezone.utc))
        )
        return result.rowcount

    def delete_cart(self, cart: CartModel):
        self.db.delete(cart)
        self.db.flush()

    #items
    def get_cart_item(self, cart_item_id: int) -> CartItemModel | None:
        return self.db.get(CartItemModel, cart_item_id)

    def find_line(self, cart_id: int, band_id: int) -> CartItemModel | None:
        stmt = select(CartItemModel).where(
            CartItemModel.cart_id == cart_id,
            CartItemModel.band_id == band_id,
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def get_cart_items(self, cart_id: int) -> Sequence[CartItemModel]:
        stmt = (
            select(CartItemModel)
            .where(CartItemModel.cart_id == cart_id)
            .order_by(CartItemModel.added_at, CartItemModel.id)
        )
        return self.db.execute(stmt).scalars().all()

    def get_active_lines(self, cart_id: int):
        """Cart lines joined with their band, skipping inactive bands."""
        stmt = (
            select(CartItemModel, BandModel)
            .join(BandModel, BandModel.id == CartItemModel.band_id)
            .where(CartItemModel.cart_id == cart_id, BandModel.active.is_(True))
            .order_by(CartItemModel.added_at, CartItemModel.id)
        )
        return self.db.execute(stmt).all()

    def add_cart_item(self, item: CartItemModel) -> CartItemModel:
        self.db.add(item)
        self.db.flush()
        return item

    def delete_cart_item(self, item: CartItemModel):
        self.db.delete(item)
        self.db.flush()

    def clear_items(self, cart_id: int) -> int:
        result = self.db.execute(
            delete(CartItemModel)
            .where(CartItemModel.cart_id == cart_id)
        )
        return result.rowcount
