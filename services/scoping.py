"""Tenant/global visibility predicates shared by the catalog services."""

from typing import Optional, Tuple


def visibility_filter(
    tenant_id: Optional[str], is_global: Optional[bool] = None
) -> Tuple[str, tuple]:
    """Build the WHERE fragment restricting rows to what a tenant may see.

    Args:
        tenant_id: The caller's tenant (None sees global rows only).
        is_global: True for global rows only, False for the tenant's private
            rows only, None for both.

    Returns:
        Tuple of (SQL fragment, parameters).
    """
    if is_global is None:
        return "(is_global = 1 OR tenant_id = ?)", (tenant_id,)
    if is_global:
        return "is_global = 1", ()
    return "(is_global = 0 AND tenant_id = ?)", (tenant_id,)
