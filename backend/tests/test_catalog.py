import random

from ecoscan.db.seed import DEMO_PRODUCTS, seed_demo_data
from ecoscan.models import Challenge, Product, Reward
from ecoscan.services.product_catalog import ProductCatalogService, lookup_product, synthetic_product


def test_find_by_barcode_is_exact_and_case_sensitive(db, make_product):
    make_product(barcode="ABC123", name="Refill Pack")

    assert ProductCatalogService.find_by_barcode(db, "ABC123").name == "Refill Pack"
    assert ProductCatalogService.find_by_barcode(db, "abc123") is None
    assert ProductCatalogService.find_by_barcode(db, " ABC123") is None
    assert ProductCatalogService.find_by_barcode(db, "ABC12") is None


def test_list_all_orders_by_overall_score(db, make_product):
    make_product(barcode="1", name="Middling", overall_score=50)
    make_product(barcode="2", name="Best", overall_score=95)
    make_product(barcode="3", name="Worst", overall_score=10)

    names = [p.name for p in ProductCatalogService.list_all(db)]

    assert names == ["Best", "Middling", "Worst"]


def test_lookup_product_returns_response_model(session_factory, make_product):
    make_product(barcode="777", overall_score=66)

    product = lookup_product(session_factory, "777")

    assert product.overall_score == 66
    assert product.synthetic is False
    assert lookup_product(session_factory, "778") is None


def test_synthetic_product_scores_stay_in_bands():
    rng = random.Random(7)
    for _ in range(50):
        product = synthetic_product(rng)
        assert product.synthetic
        assert product.barcode.startswith("DEMO")
        assert product.name == "Demo Eco Product"
        assert product.recyclable
        assert 85 <= product.overall_score <= 99
        assert 70 <= product.carbon_footprint <= 99
        assert 80 <= product.ethical_score <= 99


def test_synthetic_products_get_fresh_ids():
    assert synthetic_product().id != synthetic_product().id


def test_seed_is_idempotent(db):
    first = seed_demo_data(db)
    second = seed_demo_data(db)

    assert first["products"] == len(DEMO_PRODUCTS)
    assert first["challenges"] > 0
    assert first["rewards"] > 0
    assert second == {"products": 0, "challenges": 0, "rewards": 0}
    assert db.query(Product).count() == len(DEMO_PRODUCTS)
    assert db.query(Challenge).filter(Challenge.active.is_(True)).count() == first["challenges"]
    assert db.query(Reward).count() == first["rewards"]
