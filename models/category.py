"""Category models for the hierarchical reference catalog."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

CATEGORY_TYPES = ("material", "work")

PATH_SEPARATOR = " / "

# Deepest path each catalog can carry through its CSV level columns
MAX_LEVELS = {"material": 4, "work": 3}


@dataclass
class CategoryNode:
    """A node in a category tree.

    Attributes:
        id: Opaque unique identifier (generated on creation).
        name: Trimmed, non-empty category name.
        type: Catalog the category belongs to ("material" or "work").
        parent_id: ID of the parent node, None for a root.
        tenant_id: Owning tenant, None for global nodes.
        is_global: True if the node is shared by all tenants.
        created_at: Timestamp when the node was created.
    """

    id: str
    name: str
    type: str
    parent_id: Optional[str] = None
    tenant_id: Optional[str] = None
    is_global: bool = False
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class ResolvedPath:
    """Result of resolving a list of level names into the tree."""

    id: Optional[str]
    full_path: str


@dataclass(frozen=True)
class CategoryScope:
    """Which forest of the category tree a caller reads and writes.

    A scope is either global (shared, no tenant) or private to one tenant,
    and always targets a single category type.

    Raises:
        ValueError: If the type is unknown or the tenant/global combination
            is inconsistent.
    """

    type: str
    tenant_id: Optional[str] = None
    is_global: bool = False

    def __post_init__(self):
        if self.type not in CATEGORY_TYPES:
            raise ValueError(
                f"Unknown category type: {self.type!r} "
                f"(expected one of: {', '.join(CATEGORY_TYPES)})"
            )
        if self.tenant_id is not None:
            object.__setattr__(self, "tenant_id", self.tenant_id.strip())
        if self.is_global and self.tenant_id is not None:
            raise ValueError("Global scope cannot carry a tenant_id")
        if not self.is_global and not self.tenant_id:
            raise ValueError("Tenant scope requires a tenant_id")

    @classmethod
    def shared(cls, type: str) -> "CategoryScope":
        """Scope for categories shared across all tenants."""
        return cls(type=type, tenant_id=None, is_global=True)

    @classmethod
    def for_tenant(cls, tenant_id: str, type: str) -> "CategoryScope":
        """Scope for categories private to one tenant."""
        return cls(type=type, tenant_id=tenant_id, is_global=False)
