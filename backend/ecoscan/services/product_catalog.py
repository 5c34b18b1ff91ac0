"""
Product Catalog Service
Read-only lookups against the product catalog, plus the demo product
factory used when a scan has nothing real to resolve to.
"""

import logging
import random
import time
import uuid
from typing import List, Optional

from sqlalchemy.orm import Session

from ecoscan.core.constants import (
    SYNTHETIC_BARCODE_PREFIX,
    SYNTHETIC_CARBON_FOOTPRINT,
    SYNTHETIC_ETHICAL_SCORE,
    SYNTHETIC_OVERALL_SCORE,
    SYNTHETIC_PRODUCT_NAME,
)
from ecoscan.core.exceptions import ProductNotFound
from ecoscan.models.product import Product
from ecoscan.schemas.product import ProductResponse

logger = logging.getLogger(__name__)


class ProductCatalogService:

    @staticmethod
    def find_by_barcode(db: Session, barcode: str) -> Optional[Product]:
        """Exact, case-sensitive barcode match. No trimming or normalization."""
        return db.query(Product).filter(Product.barcode == barcode).first()

    @staticmethod
    def get_by_barcode(db: Session, barcode: str) -> Product:
        """Like find_by_barcode but raises ProductNotFound."""
        product = ProductCatalogService.find_by_barcode(db, barcode)
        if product is None:
            raise ProductNotFound(barcode)
        return product

    @staticmethod
    def list_all(db: Session) -> List[Product]:
        """Whole catalog, best overall_score first (name breaks ties)."""
        return db.query(Product).order_by(
            Product.overall_score.desc(),
            Product.name.asc()
        ).all()


def lookup_product(session_factory, barcode: str) -> Optional[ProductResponse]:
    """
    Resolve a barcode with a short-lived session.

    Used by scan sessions, which run outside any request-scoped session.
    """
    db = session_factory()
    try:
        product = ProductCatalogService.find_by_barcode(db, barcode)
        if product is None:
            logger.info(f"[Catalog] No product for barcode {barcode!r}")
            return None
        logger.info(f"[Catalog] Barcode {barcode!r} -> {product.name} ({product.overall_score}/100)")
        return ProductResponse.model_validate(product)
    finally:
        db.close()


def synthetic_product(rng: Optional[random.Random] = None) -> ProductResponse:
    """
    Manufacture a demo product with a fresh barcode and high scores.

    Used when no camera is available, nothing was detected in time, or a
    camera-detected barcode is not in the catalog.
    """
    rng = rng or random
    stamp = int(time.time() * 1000)
    return ProductResponse(
        id=uuid.uuid4(),
        barcode=f"{SYNTHETIC_BARCODE_PREFIX}{stamp}",
        name=SYNTHETIC_PRODUCT_NAME,
        overall_score=rng.randint(*SYNTHETIC_OVERALL_SCORE),
        carbon_footprint=rng.randint(*SYNTHETIC_CARBON_FOOTPRINT),
        ethical_score=rng.randint(*SYNTHETIC_ETHICAL_SCORE),
        recyclable=True,
        synthetic=True,
    )
