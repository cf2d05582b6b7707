# pulse/data/models/order_item.py
from sqlalchemy import Column, ForeignKey, Integer, Numeric
from sqlalchemy.orm import relationship

from pulse.data.database import Base


class OrderItemModel(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    band_id = Column(Integer, ForeignKey("bands.id"), nullable=False)

    quantity = Column(Integer, nullable=False)
    # price snapshot at checkout, independent of later catalog changes
    unit_price = Column(Numeric(10, 2), nullable=False)

    order = relationship("OrderModel", back_populates="items")
    band = relationship("BandModel", lazy="joined")
