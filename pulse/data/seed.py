# pulse/data/seed.py
"""Demo catalog. Run with ``python -m pulse.data.seed``; a no-op when bands exist."""
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from pulse.data.database import build_engine, build_session_factory, init_models
from pulse.data.models import BandModel, WatchModel
from pulse.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)

IMG = "https://images.unsplash.com/photo-{}?auto=format&fit=crop&w=800&q=80"

BANDS = [
    dict(
        name="Nike Sport Loop",
        description="Lightweight, breathable, and adjustable",
        price=Decimal("49.99"),
        color="Midnight Fog",
        material="Fluoroelastomer",
        stock=15,
        featured=True,
        image_url=IMG.format("1523170335258-f5ed11844a49"),
        features=["Sweat-resistant", "Adjustable", "Lightweight"],
        compatibilities=["Series 4+", "All sizes"],
    ),
    dict(
        name="Nike Sport Band",
        description="Sweat-resistant and durable",
        price=Decimal("49.99"),
        color="Pure Platinum",
        material="Silicone",
        stock=8,
        featured=True,
        image_url=IMG.format("1558433916-90a36a0c5ba9"),
        features=["Sweat-resistant", "Durable", "Comfortable"],
        compatibilities=["Series 3+", "41mm/45mm"],
    ),
    dict(
        name="Nike Heritage",
        description="Classic design with modern materials",
        price=Decimal("59.99"),
        color="Black/Volt",
        material="Premium Nylon",
        stock=22,
        image_url=IMG.format("1546868871-7041f2a55e12"),
        features=["Classic design", "Breathable", "Adjustable"],
        compatibilities=["All Series", "All sizes"],
    ),
    dict(
        name="Nike Liquid-Glass Pro",
        description="With self-healing liquid-glass technology",
        price=Decimal("79.99"),
        color="Ocean Blue",
        material="Liquid-Glass Composite",
        stock=5,
        featured=True,
        liquid_glass=True,
        image_url=IMG.format("1579586337278-3f9a8c97d6e0"),
        features=["Self-healing", "Waterproof", "Premium finish"],
        compatibilities=["Series 6+", "45mm"],
    ),
    dict(
        name="Nike Trail Band",
        description="Designed for extreme conditions",
        price=Decimal("64.99"),
        color="Forest Green",
        material="Reinforced Silicone",
        stock=12,
        image_url=IMG.format("1523275335684-37898b6baf30"),
        features=["Extreme durability", "Mud-resistant", "Enhanced grip"],
        compatibilities=["Series 5+", "All sizes"],
    ),
    dict(
        name="Nike Midnight Collection",
        description="Elegant design for all occasions",
        price=Decimal("69.99"),
        color="Midnight Black",
        material="Premium Leather",
        stock=7,
        image_url=IMG.format("1553062407-98eeb64c6a62"),
        features=["Elegant design", "Comfortable", "Formal wear"],
        compatibilities=["All Series", "41mm/45mm"],
    ),
]

WATCHES = [
    dict(
        name="Apple Watch Series 8",
        description="Advanced health features and durable design",
        price=Decimal("399.00"),
        stock=30,
        release_year=2022,
        image_url=IMG.format("1434493650001-5d43a6fea0a0"),
        sizes=["41mm", "45mm"],
        colors=["Midnight", "Starlight", "Silver", "Red"],
        features=["Blood Oxygen", "ECG", "Always-On Retina"],
    ),
    dict(
        name="Apple Watch Ultra",
        description="Built for endurance and adventure",
        price=Decimal("799.00"),
        stock=12,
        release_year=2022,
        image_url=IMG.format("1579586337278-3f9a8c97d6e0"),
        sizes=["49mm"],
        colors=["Titanium"],
        features=["Dive Computer", "86dB Siren", "Precision Dual-Frequency GPS"],
    ),
    dict(
        name="Apple Watch SE",
        description="Essential features at a great value",
        price=Decimal("249.00"),
        stock=40,
        release_year=2022,
        image_url=IMG.format("1546868871-7041f2a55e12"),
        sizes=["40mm", "44mm"],
        colors=["Midnight", "Starlight", "Silver"],
        features=["Retina Display", "Fall Detection", "Fitness Tracking"],
    ),
]


def seed(db: Session) -> bool:
    #not forcing: only seed if empty
    if db.execute(select(BandModel.id).limit(1)).first():
        logger.info("Catalog already present, skipping seed")
        return False

    db.add_all(BandModel(**b) for b in BANDS)
    db.add_all(WatchModel(**w) for w in WATCHES)
    db.commit()

    logger.info(f"Seeded {len(BANDS)} bands and {len(WATCHES)} watches")
    return True


def main():
    setup_logging()
    engine = build_engine()
    init_models(engine)
    db = build_session_factory(engine)()
    try:
        seed(db)
    finally:
        db.close()
        engine.dispose()


if __name__ == "__main__":
    main()
