# pulse/data/models/band.py
from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, CheckConstraint, Column, DateTime, Integer, Numeric, String, Text

from pulse.data.database import Base


class BandModel(Base):
    __tablename__ = "bands"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    color = Column(String(100), nullable=True)
    material = Column(String(100), nullable=True)
    stock = Column(Integer, nullable=False, default=0)
    featured = Column(Boolean, nullable=False, default=False)
    liquid_glass = Column(Boolean, nullable=False, default=False)
    image_url = Column(String(500), nullable=True)
    active = Column(Boolean, nullable=False, default=True, index=True)

    # ordered lists of strings, stored as JSON
    features = Column(JSON, nullable=False, default=list)
    compatibilities = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (CheckConstraint("stock >= 0", name="ck_bands_stock_non_negative"),)
