"""Material model for the materials reference catalog."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional


@dataclass
class Material:
    """A purchasable material filed under a material category.

    Attributes:
        id: Unique identifier (auto-generated, None until saved).
        sku: Supplier article number.
        name: Material name.
        unit: Unit of measure (e.g. "мешок", "шт").
        price: Unit price.
        supplier: Optional supplier name.
        weight: Weight per unit in kg.
        category: Leaf category name, kept alongside category_id.
        category_id: ID of the leaf CategoryNode.
        category_full_path: Breadcrumb of the category at import time.
        product_url: Optional link to the product page.
        image: Optional image URL.
        tenant_id: Owning tenant, None for global materials.
        is_global: True if the material is shared by all tenants.
    """

    id: Optional[int]
    sku: str
    name: str
    unit: str = ""
    price: Decimal = Decimal("0")
    supplier: Optional[str] = None
    weight: Decimal = Decimal("0")
    category: str = ""
    category_id: Optional[str] = None
    category_full_path: Optional[str] = None
    product_url: Optional[str] = None
    image: Optional[str] = None
    tenant_id: Optional[str] = None
    is_global: bool = False

    @property
    def import_key(self) -> str:
        """Identifier used when reporting import errors."""
        return self.sku
