"""Catalog import service: resolves categories and stores imported items."""

from typing import Dict, List, Sequence, Tuple

from categorization import auto_categorize
from config import Config
from models.catalog_import import ImportResult, ImportRow, RowError
from models.category import CategoryScope, ResolvedPath
from services.categories import CategoryService
from tools.category_tree import category_paths
from logger import get_logger

logger = get_logger()

IMPORT_MODES = ("append", "replace")


class ImportService:
    """Imports parsed catalog rows into one scope.

    Args:
        categories: Category service used to resolve level names.
        catalogs: Catalog service per category type ("material", "work").
        config: Application configuration (default category, row limit, LLM).
    """

    def __init__(self, categories: CategoryService, catalogs: Dict, config: Config):
        self.categories = categories
        self.catalogs = catalogs
        self.config = config

    def import_rows(
        self,
        rows: List[ImportRow],
        scope: CategoryScope,
        mode: str = "append",
        rejected: Sequence[RowError] = (),
    ) -> ImportResult:
        """Import rows into the catalog of ``scope.type``.

        Each distinct category path is resolved once per run. A row that
        fails is recorded in the result and the run continues. Lines the CSV
        parser rejected count towards the total and are reported first.

        Args:
            rows: Parsed rows from an ingestion module.
            scope: Target scope; items and categories are created in it.
            mode: "append" keeps existing items, "replace" deletes every item
                of the scope first.
            rejected: Errors for lines the parser could not turn into rows.

        Returns:
            ImportResult with counts and per-row errors.

        Raises:
            ValueError: If the mode is unknown, there are too many rows, or
                mode is "replace" and some lines were rejected (nothing is
                deleted then).
        """
        if mode not in IMPORT_MODES:
            raise ValueError(
                f"Unknown import mode: {mode} (expected one of: {', '.join(IMPORT_MODES)})"
            )
        total = len(rows) + len(rejected)
        if total > self.config.import_max_rows:
            raise ValueError(
                f"Import limit exceeded: {total} > {self.config.import_max_rows}"
            )
        if mode == "replace" and rejected:
            raise ValueError(
                f"{len(rejected)} line(s) could not be parsed; "
                f"fix them before replacing the catalog (first: "
                f"{rejected[0].key}: {rejected[0].error})"
            )

        catalog = self.catalogs[scope.type]
        result = ImportResult(total=total, errors=list(rejected))

        logger.info(
            f"Importing {total} {scope.type} row(s) in mode {mode} "
            f"({'global' if scope.is_global else f'tenant {scope.tenant_id}'})"
        )

        if mode == "replace":
            deleted = catalog.delete_all(scope.tenant_id, scope.is_global)
            logger.info(f"Replace mode: deleted {deleted} existing item(s)")

        if self.config.llm_enabled:
            auto_categorize(rows, self._scope_paths(scope), scope.type, self.config)

        resolved_paths: Dict[Tuple[str, ...], ResolvedPath] = {}

        for row in rows:
            item = row.item
            try:
                levels = self._levels_for(row)
                path_key = tuple(levels)

                resolved = resolved_paths.get(path_key)
                if resolved is None:
                    resolved = self.categories.resolve(levels, scope)
                    resolved_paths[path_key] = resolved

                item.category = levels[-1]
                item.category_id = resolved.id
                item.category_full_path = resolved.full_path
                item.tenant_id = scope.tenant_id
                item.is_global = scope.is_global

                catalog.create(item)
                result.success_count += 1
            except Exception as e:
                logger.warning(f"Failed to import {item.import_key}: {e}")
                result.errors.append(RowError(key=item.import_key, error=str(e)))

        logger.info(
            f"Import finished: {result.success_count} imported, "
            f"{result.error_count} failed, {len(resolved_paths)} category path(s)"
        )

        return result

    def _levels_for(self, row: ImportRow) -> List[str]:
        """Pick the category levels of a row, falling back to the default."""
        levels = [level.strip() for level in row.levels if level and level.strip()]
        if not levels and row.legacy_category:
            levels = [row.legacy_category.strip()]
        if not levels:
            levels = [self.config.default_category]
        return levels

    def _scope_paths(self, scope: CategoryScope) -> List[str]:
        """Existing category paths that live in exactly this scope."""
        nodes = [
            node
            for node in self.categories.find_all(scope.tenant_id, scope.type)
            if node.is_global == scope.is_global
        ]
        return category_paths(nodes)
