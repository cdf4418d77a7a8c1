"""
Shared pytest fixtures for the attribute configuration tests.
"""

from pathlib import Path
from typing import Dict, List, Optional

import pytest

from attrconfig.catalog_store import CatalogStore
from attrconfig.db_hlpr import create_session_factory
from attrconfig.errors import NotFound
from attrconfig.lookups import AttributeRecord, CatalogLookups, GroupRecord
from attrconfig.shopify_hlpr import ProductRecord

SHOP = "demo.myshopify.com"


# -----------------------------------------------------------------------------
# Lookups
# -----------------------------------------------------------------------------

@pytest.fixture
def lookups() -> CatalogLookups:
    """
    Size (g1): Width (a1), Weight (a3)
    Material (g2): Color (a2), Weight (a3)
    Finish (g3): no attributes
    """
    groups = [
        GroupRecord(id="g1", name="Size", shop=SHOP),
        GroupRecord(id="g2", name="Material", shop=SHOP),
        GroupRecord(id="g3", name="Finish", shop=SHOP),
    ]
    attributes = [
        AttributeRecord(id="a1", name="Width", shop=SHOP, group_ids=("g1",)),
        AttributeRecord(id="a2", name="Color", shop=SHOP, group_ids=("g2",)),
        AttributeRecord(id="a3", name="Weight", shop=SHOP, group_ids=("g1", "g2")),
    ]
    return CatalogLookups(groups, attributes)


# -----------------------------------------------------------------------------
# Storage
# -----------------------------------------------------------------------------

@pytest.fixture
def catalog_store(tmp_path: Path) -> CatalogStore:
    return CatalogStore(create_session_factory(f"sqlite:///{tmp_path / 'catalog.db'}"))


class FakeShopify:
    """Stands in for ShopifyConnection; records every metafield write."""

    def __init__(self) -> None:
        self.products: Dict[str, ProductRecord] = {}
        self.writes: List[tuple] = []
        self.user_errors: List[str] = []
        self.raise_on_write: Optional[Exception] = None

    def add_product(self, handle: str, attribute_config: Optional[str] = None) -> ProductRecord:
        product = ProductRecord(
            id=f"gid://shopify/Product/{len(self.products) + 1}",
            handle=handle,
            title=handle.replace("-", " ").title(),
            status="ACTIVE",
            attribute_config=attribute_config,
        )
        self.products[handle] = product
        return product

    def get_product_by_handle(self, handle: str) -> ProductRecord:
        if handle not in self.products:
            raise NotFound("Product", handle)
        return self.products[handle]

    def list_products(self) -> List[ProductRecord]:
        return list(self.products.values())

    def set_attribute_config(self, product_id: str, raw_document: str) -> List[str]:
        if self.raise_on_write is not None:
            raise self.raise_on_write
        if self.user_errors:
            return list(self.user_errors)
        self.writes.append((product_id, raw_document))
        for product in self.products.values():
            if product.id == product_id:
                product.attribute_config = raw_document
        return []


@pytest.fixture
def fake_shopify() -> FakeShopify:
    return FakeShopify()
