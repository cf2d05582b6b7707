# pulse/data/models/cart_item.py
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship

from pulse.data.database import Base


class CartItemModel(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True)
    cart_id = Column(Integer, ForeignKey("shopping_carts.id", ondelete="CASCADE"), nullable=False, index=True)
    band_id = Column(Integer, ForeignKey("bands.id"), nullable=False)

    quantity = Column(Integer, nullable=False)
    added_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    cart = relationship("CartModel", back_populates="items")
    band = relationship("BandModel", lazy="joined")

    __table_args__ = (
        UniqueConstraint("cart_id", "band_id", name="u_cart_band"),
        CheckConstraint("quantity > 0", name="ck_cart_items_quantity_positive"),
    )
