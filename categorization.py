"""Auto-categorization of catalog import rows using an LLM.

Rows that arrive without any category (no level columns and no legacy
category column) would otherwise all be filed under the default category.
When an LLM provider is configured, those rows are sent to it together with
the existing category paths of the same type and scope, and each row takes
the suggested path instead.

Supports the providers configured via the application config (see llm.factory).
"""

from typing import List, Optional
from models.catalog_import import ImportRow
from models.category import MAX_LEVELS, PATH_SEPARATOR
from config import Config
from llm import get_llm_provider
from logger import get_logger

logger = get_logger()


def auto_categorize(
    rows: List[ImportRow],
    category_paths: List[str],
    kind: str,
    config: Optional[Config] = None,
) -> List[ImportRow]:
    """Fill in category levels for uncategorized rows using an LLM.

    Categorized rows are never changed. Suggestions deeper than the kind's
    CSV level columns (see MAX_LEVELS) are cut to that depth, so exported
    rows import back under the same category. This function never raises:
    any provider failure is logged and the rows are returned as they were.

    Args:
        rows: Parsed import rows.
        category_paths: Existing " / " joined category paths visible in the
            import scope.
        kind: Category type of the rows ("material" or "work").
        config: Optional config object. If None, LLM categorization is skipped.

    Returns:
        The same list of rows, with levels set on the rows the provider could
        categorize.
    """
    pending = [row for row in rows if not row.is_categorized]

    logger.info(
        f"Auto-categorization called with {len(rows)} rows "
        f"({len(pending)} uncategorized), {len(category_paths)} categories"
    )

    if not pending:
        return rows

    if config is None:
        logger.info("No config provided - skipping LLM categorization")
        return rows

    try:
        provider = get_llm_provider(config)
    except Exception as e:
        logger.error(f"Failed to initialize LLM provider: {e}")
        return rows

    if provider is None:
        logger.info("LLM categorization disabled - skipping")
        return rows

    try:
        suggestions = provider.suggest_categories(pending, category_paths, kind)
    except Exception as e:
        logger.error(f"LLM categorization failed: {e}")
        return rows

    max_levels = MAX_LEVELS[kind]
    suggestion_map = {
        s.item_key: s.levels[:max_levels] for s in suggestions if s.levels
    }

    categorized_count = 0
    for row in pending:
        levels = suggestion_map.get(row.item.import_key)
        if levels:
            row.levels = list(levels)
            categorized_count += 1
            logger.debug(
                f"Row {row.item.import_key} auto-categorized as "
                f"{PATH_SEPARATOR.join(levels)}"
            )

    logger.info(f"Auto-categorized {categorized_count}/{len(pending)} rows")

    return rows
