"""Material service for database operations."""

from decimal import Decimal
from typing import List, Optional

from models.material import Material
from services.scoping import visibility_filter

_MATERIAL_FIELDS = """sku, name, unit, price, supplier, weight, category, category_id,
    category_full_path, product_url, image, tenant_id, is_global"""

_MATERIAL_PLACEHOLDERS = f"({', '.join(['?'] * len(_MATERIAL_FIELDS.split(',')))})"


class MaterialService:
    """Service for managing the materials catalog."""

    def __init__(self, db_manager):
        """Initialize the material service.

        Args:
            db_manager: Database manager instance for database operations.
        """
        self.db_manager = db_manager

    def create(self, material: Material) -> Material:
        """Create a new material.

        Args:
            material: Material to insert (its id is ignored).

        Returns:
            The same Material object with id populated.

        Raises:
            Exception: If the insert fails (e.g. scope fields inconsistent).
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"INSERT INTO materials ({_MATERIAL_FIELDS}) VALUES {_MATERIAL_PLACEHOLDERS}",
                (
                    material.sku,
                    material.name,
                    material.unit,
                    float(material.price),
                    material.supplier,
                    float(material.weight),
                    material.category,
                    material.category_id,
                    material.category_full_path,
                    material.product_url,
                    material.image,
                    None if material.is_global else material.tenant_id,
                    int(material.is_global),
                ),
            )
            conn.commit()
            material.id = cursor.lastrowid

        return material

    def find(self, material_id: int, tenant_id: Optional[str]) -> Optional[Material]:
        """Get a single material by ID, if the tenant may see it.

        Args:
            material_id: The material ID to find.
            tenant_id: The caller's tenant.

        Returns:
            Material object if found, None otherwise.
        """
        clause, params = visibility_filter(tenant_id)
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"SELECT id, {_MATERIAL_FIELDS} FROM materials WHERE id = ? AND {clause}",
                (material_id, *params),
            )
            row = cursor.fetchone()

            if row:
                return self._row_to_material(row)
            return None

    def find_all(
        self, tenant_id: Optional[str], is_global: Optional[bool] = None
    ) -> List[Material]:
        """Get materials visible to a tenant.

        Args:
            tenant_id: The caller's tenant.
            is_global: True for global materials only, False for the tenant's
                own materials only, None for both.

        Returns:
            List of Material objects ordered by category path, then name.
        """
        clause, params = visibility_filter(tenant_id, is_global)
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT id, {_MATERIAL_FIELDS}
                FROM materials
                WHERE {clause}
                ORDER BY category_full_path, name, id
                """,
                params,
            )
            return [self._row_to_material(row) for row in cursor.fetchall()]

    def delete_all(self, tenant_id: Optional[str], is_global: bool) -> int:
        """Delete every material in one scope.

        Args:
            tenant_id: Tenant whose private materials are deleted.
            is_global: True to delete the global materials instead.

        Returns:
            Number of materials deleted.
        """
        clause, params = visibility_filter(tenant_id, is_global)
        with self.db_manager.connect() as conn:
            cursor = conn.execute(f"DELETE FROM materials WHERE {clause}", params)
            conn.commit()
            return cursor.rowcount

    def _row_to_material(self, row: tuple) -> Material:
        return Material(
            id=row[0],
            sku=row[1],
            name=row[2],
            unit=row[3],
            price=Decimal(str(row[4])),
            supplier=row[5],
            weight=Decimal(str(row[6])),
            category=row[7],
            category_id=row[8],
            category_full_path=row[9],
            product_url=row[10],
            image=row[11],
            tenant_id=row[12],
            is_global=bool(row[13]),
        )
