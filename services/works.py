"""Work service for database operations."""

from decimal import Decimal
from typing import List, Optional

from models.work import Work
from services.scoping import visibility_filter

_WORK_FIELDS = """code, name, unit, base_price, category, category_id, category_full_path,
    phase, section, subsection, tenant_id, is_global"""

_WORK_PLACEHOLDERS = f"({', '.join(['?'] * len(_WORK_FIELDS.split(',')))})"


class WorkService:
    """Service for managing the works catalog."""

    def __init__(self, db_manager):
        """Initialize the work service.

        Args:
            db_manager: Database manager instance for database operations.
        """
        self.db_manager = db_manager

    def create(self, work: Work) -> Work:
        """Create a new work.

        Args:
            work: Work to insert (its id is ignored).

        Returns:
            The same Work object with id populated.

        Raises:
            Exception: If the insert fails (e.g. negative base price).
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"INSERT INTO works ({_WORK_FIELDS}) VALUES {_WORK_PLACEHOLDERS}",
                (
                    work.code,
                    work.name,
                    work.unit,
                    float(work.base_price),
                    work.category,
                    work.category_id,
                    work.category_full_path,
                    work.phase,
                    work.section,
                    work.subsection,
                    None if work.is_global else work.tenant_id,
                    int(work.is_global),
                ),
            )
            conn.commit()
            work.id = cursor.lastrowid

        return work

    def find(self, work_id: int, tenant_id: Optional[str]) -> Optional[Work]:
        """Get a single work by ID, if the tenant may see it."""
        clause, params = visibility_filter(tenant_id)
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"SELECT id, {_WORK_FIELDS} FROM works WHERE id = ? AND {clause}",
                (work_id, *params),
            )
            row = cursor.fetchone()

            if row:
                return self._row_to_work(row)
            return None

    def find_all(
        self, tenant_id: Optional[str], is_global: Optional[bool] = None
    ) -> List[Work]:
        """Get works visible to a tenant.

        Args:
            tenant_id: The caller's tenant.
            is_global: True for global works only, False for the tenant's
                own works only, None for both.

        Returns:
            List of Work objects ordered by code.
        """
        clause, params = visibility_filter(tenant_id, is_global)
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"SELECT id, {_WORK_FIELDS} FROM works WHERE {clause} ORDER BY code, id",
                params,
            )
            return [self._row_to_work(row) for row in cursor.fetchall()]

    def delete_all(self, tenant_id: Optional[str], is_global: bool) -> int:
        """Delete every work in one scope.

        Returns:
            Number of works deleted.
        """
        clause, params = visibility_filter(tenant_id, is_global)
        with self.db_manager.connect() as conn:
            cursor = conn.execute(f"DELETE FROM works WHERE {clause}", params)
            conn.commit()
            return cursor.rowcount

    def _row_to_work(self, row: tuple) -> Work:
        return Work(
            id=row[0],
            code=row[1],
            name=row[2],
            unit=row[3],
            base_price=Decimal(str(row[4])),
            category=row[5],
            category_id=row[6],
            category_full_path=row[7],
            phase=row[8],
            section=row[9],
            subsection=row[10],
            tenant_id=row[11],
            is_global=bool(row[12]),
        )
