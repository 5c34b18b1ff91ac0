"""
Products API Endpoints
Read-only access to the product catalog.
"""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ecoscan.api.v1.deps import get_current_user_id, get_db
from ecoscan.schemas.product import ProductListResponse, ProductResponse
from ecoscan.services.product_catalog import ProductCatalogService


router = APIRouter(prefix="/products")


@router.get("", response_model=ProductListResponse)
def list_products(
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id),
):
    """Whole catalog for manual selection, best overall score first."""
    products = ProductCatalogService.list_all(db)
    return ProductListResponse(
        products=[ProductResponse.model_validate(p) for p in products],
        total=len(products),
    )


@router.get("/barcode/{barcode}", response_model=ProductResponse)
def get_product_by_barcode(
    barcode: str,
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id),
):
    """
    Exact barcode lookup.

    Raises:
        404 product_not_found: no catalog entry for this barcode
    """
    product = ProductCatalogService.get_by_barcode(db, barcode)
    return ProductResponse.model_validate(product)
