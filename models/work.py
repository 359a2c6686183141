"""Work model for the works (labour rates) reference catalog."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional


@dataclass
class Work:
    """A priced unit of construction work filed under a work category.

    Attributes:
        id: Unique identifier (auto-generated, None until saved).
        code: Price-book code, e.g. "01-02-003".
        name: Work name.
        unit: Unit of measure (e.g. "м2").
        base_price: Price per unit, never negative.
        category: Leaf category name, kept alongside category_id.
        category_id: ID of the leaf CategoryNode.
        category_full_path: Breadcrumb of the category at import time.
        phase: First category level as read from the CSV.
        section: Second category level.
        subsection: Third category level.
        tenant_id: Owning tenant, None for global works.
        is_global: True if the work is shared by all tenants.
    """

    id: Optional[int]
    code: str
    name: str
    unit: str = ""
    base_price: Decimal = Decimal("0")
    category: str = ""
    category_id: Optional[str] = None
    category_full_path: Optional[str] = None
    phase: Optional[str] = None
    section: Optional[str] = None
    subsection: Optional[str] = None
    tenant_id: Optional[str] = None
    is_global: bool = False

    @property
    def import_key(self) -> str:
        """Identifier used when reporting import errors."""
        return self.code
