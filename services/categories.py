"""Category service: hierarchical reference categories with tenant scoping."""

import uuid
from datetime import datetime
from typing import Iterable, List, Optional

from models.category import (
    CategoryNode,
    CategoryScope,
    ResolvedPath,
    PATH_SEPARATOR,
)
from logger import get_logger

logger = get_logger()

_CATEGORY_SELECT_FIELDS = (
    "id, name, type, parent_id, tenant_id, is_global, created_at"
)

# Exact-scope sibling lookup. "parent_id IS ?" matches NULL against NULL for
# root nodes; the scope clause never lets a tenant lookup see global rows or
# another tenant's rows, and vice versa.
_FIND_CHILD_QUERY = """
    SELECT id FROM categories
    WHERE name = ?
      AND parent_id IS ?
      AND type = ?
      AND (
        (is_global = 1 AND ? = 1)
        OR (tenant_id = ? AND is_global = 0)
      )
    LIMIT 1
"""

_INSERT_QUERY = """
    INSERT INTO categories (id, name, type, parent_id, tenant_id, is_global)
    VALUES (?, ?, ?, ?, ?, ?)
    ON CONFLICT DO NOTHING
"""


class CategoryService:
    """Service for resolving and listing categories."""

    def __init__(self, db_manager):
        """Initialize the category service.

        Args:
            db_manager: Database manager instance for database operations.
        """
        self.db_manager = db_manager

    def resolve(
        self, levels: Iterable[Optional[str]], scope: CategoryScope
    ) -> ResolvedPath:
        """Find or create the chain of categories named by ``levels``.

        Blank or missing levels are skipped, so ``["A", "", "C"]`` yields
        the chain A -> C. Existing nodes are reused; only missing ones are
        created. If another caller creates the same node between the lookup
        and the insert, the insert is a no-op and the winning row is adopted.

        Args:
            levels: Level names ordered from root to leaf.
            scope: Scope (type plus global/tenant ownership) to resolve in.

        Returns:
            ResolvedPath with the leaf id and the " / " joined path. Both are
            empty (None, "") when no non-blank level was given.

        Raises:
            sqlite3.Error: If the database cannot be queried.
        """
        parent_id = None
        path_parts = []
        last_id = None

        with self.db_manager.connect() as conn:
            for level in levels:
                if not level or not level.strip():
                    continue

                name = level.strip()
                path_parts.append(name)

                found_id = self._find_child(conn, name, parent_id, scope)
                if found_id is None:
                    found_id = self._create_child(conn, name, parent_id, scope)

                parent_id = found_id
                last_id = parent_id

        return ResolvedPath(id=last_id, full_path=PATH_SEPARATOR.join(path_parts))

    def find_all(self, tenant_id: Optional[str], type: str) -> List[CategoryNode]:
        """Get every category of a type visible to a tenant.

        Visible means global, or private to ``tenant_id``. A None tenant sees
        only global categories.

        Args:
            tenant_id: The caller's tenant.
            type: Category type to list.

        Returns:
            Flat list of CategoryNode objects: roots first (by name), then
            children grouped by parent and ordered by name.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT {_CATEGORY_SELECT_FIELDS}
                FROM categories
                WHERE type = ?
                  AND (is_global = 1 OR tenant_id = ?)
                ORDER BY parent_id IS NOT NULL, parent_id, name
                """,
                (type, tenant_id),
            )
            return [self._row_to_category(row) for row in cursor.fetchall()]

    def find(
        self, category_id: str, tenant_id: Optional[str]
    ) -> Optional[CategoryNode]:
        """Get a single category by ID, if the tenant may see it.

        Args:
            category_id: The category ID to find.
            tenant_id: The caller's tenant.

        Returns:
            CategoryNode if found and visible, None otherwise.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT {_CATEGORY_SELECT_FIELDS}
                FROM categories
                WHERE id = ?
                  AND (is_global = 1 OR tenant_id = ?)
                """,
                (category_id, tenant_id),
            )
            row = cursor.fetchone()

            if row:
                return self._row_to_category(row)
            return None

    def full_path(self, category_id: str, tenant_id: Optional[str]) -> str:
        """Build the breadcrumb of an existing category.

        Args:
            category_id: ID of the category to describe.
            tenant_id: The caller's tenant.

        Returns:
            Names from root to the category joined with " / ".

        Raises:
            Exception: If the category (or one of its ancestors) is not
                visible to the tenant, or the parent chain loops.
        """
        names = []
        seen = set()
        current_id = category_id

        while current_id is not None:
            if current_id in seen:
                raise Exception(f"Category parent chain loops at ID {current_id}")
            seen.add(current_id)

            node = self.find(current_id, tenant_id)
            if node is None:
                raise Exception(f"Category with ID {current_id} not found")

            names.append(node.name)
            current_id = node.parent_id

        return PATH_SEPARATOR.join(reversed(names))

    def _find_child(
        self, conn, name: str, parent_id: Optional[str], scope: CategoryScope
    ) -> Optional[str]:
        cursor = conn.execute(
            _FIND_CHILD_QUERY,
            (name, parent_id, scope.type, int(scope.is_global), scope.tenant_id),
        )
        row = cursor.fetchone()
        return row[0] if row else None

    def _create_child(
        self, conn, name: str, parent_id: Optional[str], scope: CategoryScope
    ) -> str:
        """Insert a category, tolerating a concurrent insert of the same node.

        Returns:
            ID of the row that now occupies (name, parent, scope).
        """
        cursor = conn.execute(
            _INSERT_QUERY,
            (
                uuid.uuid4().hex,
                name,
                scope.type,
                parent_id,
                scope.tenant_id,
                int(scope.is_global),
            ),
        )
        conn.commit()

        if cursor.rowcount == 0:
            logger.debug(f"Category '{name}' was created concurrently, reusing it")
        else:
            logger.debug(
                f"Created {scope.type} category '{name}' "
                f"(parent: {parent_id}, tenant: {scope.tenant_id})"
            )

        category_id = self._find_child(conn, name, parent_id, scope)
        if category_id is None:
            raise RuntimeError(
                f"Category '{name}' not found after insert (parent: {parent_id})"
            )
        return category_id

    def _row_to_category(self, row: tuple) -> CategoryNode:
        """Convert a database row to a CategoryNode object.

        Args:
            row: Database row tuple.

        Returns:
            CategoryNode object.
        """
        return CategoryNode(
            id=row[0],
            name=row[1],
            type=row[2],
            parent_id=row[3],
            tenant_id=row[4],
            is_global=bool(row[5]),
            created_at=datetime.fromisoformat(row[6]) if row[6] else None,
        )
