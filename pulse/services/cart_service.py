# pulse/services/cart_service.py
from decimal import Decimal
from typing import Any, Dict

from sqlalchemy.orm import Session

from pulse.data.database import unit_of_work
from pulse.data.models.cart import CartModel
from pulse.data.models.cart_item import CartItemModel
from pulse.domain.errors import NotFoundError, OutOfStockError, ValidationError
from pulse.domain.owner import GuestOwner, Owner, UserOwner
from pulse.repos.band_repo import BandRepo
from pulse.repos.cart_repo import CartRepo
from pulse.utils.logging import get_logger

logger = get_logger(__name__)

CENT = Decimal("0.01")


def empty_cart() -> Dict[str, Any]:
    return {"id": None, "items": [], "total": Decimal("0.00"), "item_count": 0}


class CartService:
    """
    Cart use cases for logged-in users and guest sessions.
    queries (get_cart) only read; commands run in one transaction each
    and return the refreshed cart.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = CartRepo(db)
        self.bands = BandRepo(db)

    #query
    def get_cart(self, owner: Owner) -> Dict[str, Any]:
        cart = self.repo.get_current_cart(owner)
        if not cart:
            return empty_cart()
        return self._view(cart)

    def _view(self, cart: CartModel) -> Dict[str, Any]:
        items = []
        total = Decimal("0.00")
        item_count = 0

        #lines whose band was deactivated are hidden and not charged
        for item, band in self.repo.get_active_lines(cart.id):
            items.append(
                {
                    "id": item.id,
                    "band_id": band.id,
                    "quantity": item.quantity,
                    "added_at": item.added_at,
                    "name": band.name,
                    "price": band.price,
                    "image_url": band.image_url,
                    "color": band.color,
                    "material": band.material,
                    "stock": band.stock,
                }
            )
            total += band.price * item.quantity
            item_count += item.quantity

        return {
            "id": cart.id,
            "user_id": cart.user_id,
            "session_id": cart.session_id,
            "items": items,
            "total": total.quantize(CENT),
            "item_count": item_count,
            "created_at": cart.created_at,
            "updated_at": cart.updated_at,
        }

    #commands
    def add_item(self, owner: Owner, band_id: int, quantity: int = 1) -> Dict[str, Any]:
        if quantity <= 0:
            raise ValidationError("Quantity must be greater than 0")

        with unit_of_work(self.db):
            band = self.bands.get_active(band_id)
            if not band:
                raise NotFoundError("Band not found")

            #the cart is not a reservation, stock is enforced again at checkout
            if quantity > band.stock:
                raise OutOfStockError(f"Only {band.stock} items available in stock", band.stock)

            cart = self.repo.get_current_cart(owner)
            if not cart:
                cart = self.repo.create_cart(owner)
                logger.info(f"Created cart {cart.id} for {owner}")

            line = self.repo.find_line(cart.id, band_id)
            if line:
                logger.info(
                    f"Band {band_id} already in cart {cart.id}, quantity "
                    f"{line.quantity} -> {line.quantity + quantity}"
                )
                line.quantity += quantity
            else:
                self.repo.add_cart_item(
                    CartItemModel(cart_id=cart.id, band_id=band_id, quantity=quantity)
                )

            self.repo.touch_cart(cart.id)

        logger.info(f"Band {band_id} x{quantity} added to cart {cart.id}")
        return self._view(cart)

    def update_item(self, cart_item_id: int, quantity: int) -> Dict[str, Any]:
        if quantity < 0:
            raise ValidationError("Quantity cannot be negative")

        with unit_of_work(self.db):
            item = self.repo.get_cart_item(cart_item_id)
            if not item:
                raise NotFoundError("Cart item not found")

            cart = item.cart

            if quantity == 0:
                self.repo.delete_cart_item(item)
            else:
                band = self.bands.get(item.band_id)
                if quantity > band.stock:
                    raise OutOfStockError(f"Only {band.stock} items available in stock", band.stock)
                item.quantity = quantity

            self.repo.touch_cart(cart.id)

        logger.info(f"Cart item {cart_item_id} set to quantity {quantity} in cart {cart.id}")
        return self._view(cart)

    def remove_item(self, cart_item_id: int) -> Dict[str, Any]:
        with unit_of_work(self.db):
            item = self.repo.get_cart_item(cart_item_id)
            if not item:
                raise NotFoundError("Cart item not found")

            cart = item.cart
            self.repo.delete_cart_item(item)
            self.repo.touch_cart(cart.id)

        logger.info(f"Cart item {cart_item_id} removed from cart {cart.id}")
        return self._view(cart)

    def clear(self, cart_id: int) -> Dict[str, Any]:
        with unit_of_work(self.db):
            cart = self.repo.get_cart(cart_id)
            if not cart:
                raise NotFoundError("Cart not found")

            removed = self.repo.clear_items(cart_id)
            self.repo.touch_cart(cart_id)

        logger.info(f"Cart {cart_id} cleared ({removed} lines)")
        return self._view(cart)

    def merge(self, user_id: int, session_id: str) -> Dict[str, Any]:
        """
        Fold the guest session's cart into the user's current cart.

        Lines for the same band have their quantities summed, the rest are
        copied over; the guest cart is deleted. Merged quantities are not
        re-checked against stock, checkout does that.
        """
        user = UserOwner(user_id=user_id)
        guest = GuestOwner(session_id=session_id)

        with unit_of_work(self.db):
            guest_cart = self.repo.get_current_cart(guest)
            if not guest_cart:
                logger.info(f"No guest cart to merge for session {session_id}")
                return {"merged": False, "cart": self.get_cart(user)}

            user_cart = self.repo.get_current_cart(user)
            if not user_cart:
                user_cart = self.repo.create_cart(user)

            for guest_item in self.repo.get_cart_items(guest_cart.id):
                line = self.repo.find_line(user_cart.id, guest_item.band_id)
                if line:
                    line.quantity += guest_item.quantity
                else:
                    self.repo.add_cart_item(
                        CartItemModel(
                            cart_id=user_cart.id,
                            band_id=guest_item.band_id,
                            quantity=guest_item.quantity,
                        )
                    )

            self.repo.delete_cart(guest_cart)
            self.repo.touch_cart(user_cart.id)

        logger.info(f"Guest cart {guest_cart.id} merged into cart {user_cart.id} of user {user_id}")
        return {"merged": True, "cart": self._view(user_cart)}
