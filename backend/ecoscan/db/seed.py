"""
Demo Data Seeding

Seeds the product catalog, challenges and rewards when they are missing.
Called at startup (SEED_DEMO_DATA) after create_all(), or by hand:

    python -m ecoscan.db.seed
"""

import logging

from sqlalchemy.orm import Session

from ecoscan.models.challenge import Challenge
from ecoscan.models.product import Product
from ecoscan.models.reward import Reward

logger = logging.getLogger(__name__)


DEMO_PRODUCTS = [
    {"barcode": "8901030778261", "name": "Organic Oat Milk", "overall_score": 88,
     "carbon_footprint": 82, "ethical_score": 90, "recyclable": True},
    {"barcode": "5449000000996", "name": "Cola Classic 330ml Can", "overall_score": 34,
     "carbon_footprint": 30, "ethical_score": 38, "recyclable": True},
    {"barcode": "4006381333931", "name": "Recycled Paper Notebook", "overall_score": 79,
     "carbon_footprint": 75, "ethical_score": 81, "recyclable": True},
    {"barcode": "7622210449283", "name": "Milk Chocolate Bar", "overall_score": 47,
     "carbon_footprint": 41, "ethical_score": 52, "recyclable": False},
    {"barcode": "3017620422003", "name": "Hazelnut Spread 400g", "overall_score": 29,
     "carbon_footprint": 25, "ethical_score": 22, "recyclable": False},
    {"barcode": "8712100325953", "name": "Bamboo Toothbrush", "overall_score": 92,
     "carbon_footprint": 90, "ethical_score": 94, "recyclable": True},
    {"barcode": "5000112546415", "name": "Bottled Spring Water 1.5L", "overall_score": 41,
     "carbon_footprint": 35, "ethical_score": 50, "recyclable": True},
    {"barcode": "4311501354653", "name": "Fair Trade Coffee Beans", "overall_score": 85,
     "carbon_footprint": 70, "ethical_score": 97, "recyclable": False},
]

DEMO_CHALLENGES = [
    {"title": "Plastic-Free Week", "description": "Scan 5 products with recyclable packaging",
     "points": 150},
    {"title": "Green Streak", "description": "Scan a product every day for 7 days",
     "points": 200},
    {"title": "Eco Explorer", "description": "Scan 10 different products",
     "points": 100},
    {"title": "Local Hero", "description": "Scan 3 products rated 80 or above",
     "points": 120},
]

DEMO_REWARDS = [
    {"name": "Plant a Tree", "description": "One native tree planted in a reforestation project",
     "points_required": 500, "partner_ngo": "One Tree Planted"},
    {"name": "Beach Cleanup Kit", "description": "Fund a volunteer kit for a coastal cleanup",
     "points_required": 750, "partner_ngo": "Ocean Conservancy"},
    {"name": "Solar Lamp Donation", "description": "A solar lamp for a family without electricity",
     "points_required": 1500, "partner_ngo": "SolarAid"},
    {"name": "Protect 10m2 of Rainforest", "description": "Protect rainforest for one year",
     "points_required": 3000, "partner_ngo": "Rainforest Trust"},
]


def seed_products(db: Session) -> int:
    added = 0
    for data in DEMO_PRODUCTS:
        exists = db.query(Product).filter(Product.barcode == data["barcode"]).first()
        if not exists:
            db.add(Product(**data))
            added += 1
    return added


def seed_challenges(db: Session) -> int:
    added = 0
    for data in DEMO_CHALLENGES:
        exists = db.query(Challenge).filter(Challenge.title == data["title"]).first()
        if not exists:
            db.add(Challenge(active=True, **data))
            added += 1
    return added


def seed_rewards(db: Session) -> int:
    added = 0
    for data in DEMO_REWARDS:
        exists = db.query(Reward).filter(Reward.name == data["name"]).first()
        if not exists:
            db.add(Reward(active=True, **data))
            added += 1
    return added


def seed_demo_data(db: Session) -> dict:
    """
    Insert any missing demo rows. Safe to run repeatedly.

    Returns counts of added rows per table.
    """
    counts = {
        "products": seed_products(db),
        "challenges": seed_challenges(db),
        "rewards": seed_rewards(db),
    }

    if any(counts.values()):
        db.commit()
        logger.info(
            f"[Seed] Added {counts['products']} products, "
            f"{counts['challenges']} challenges, {counts['rewards']} rewards"
        )
    else:
        logger.info("[Seed] Demo data already present")
    return counts


if __name__ == "__main__":
    from ecoscan.db.session import SessionLocal, engine
    from ecoscan.models import Base

    logging.basicConfig(level=logging.INFO)
    Base.metadata.create_all(bind=engine)

    session = SessionLocal()
    try:
        seed_demo_data(session)
    finally:
        session.close()
