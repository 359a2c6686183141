import csv
import logging
from typing import Dict, List, Optional, TextIO

from ingestion.materials import parse_number, pick, read_rows, split_path
from models.catalog_import import ImportRow, ParsedCatalog
from models.category import MAX_LEVELS
from models.work import Work

logger = logging.getLogger(__name__)

KIND = "work"

CSV_DELIMITER = ","

_LEVEL_COUNT = MAX_LEVELS[KIND]

_CSV_HEADERS = [
    "Код",
    "Наименование",
    "Категория",
    "Ед. изм.",
    "Базовая цена",
    "Фаза",
    "Раздел",
    "Подраздел",
]

_TEMPLATE_EXAMPLES = (
    "01-001,Демонтаж перегородок,Демонтаж,м2,350,Черновые работы,Демонтаж,Перегородки",
    "02-001,Штукатурка стен гипсовая,Штукатурка,м2,520,Черновые работы,Стены,Штукатурка",
)


def row_to_import_row(
    row: Dict[str, str],
    tenant_id: Optional[str],
    is_global: bool,
    line_number: Optional[int] = None,
) -> ImportRow:
    """Convert a CSV row to an ImportRow holding a Work.

    Phase, section and subsection are the three category levels.

    Raises:
        ValueError: If code or name is missing, or the base price is negative.
    """
    code = pick(row, ("Код", "code"))
    name = pick(row, ("Наименование", "name"))
    if not code or not name:
        raise ValueError(
            f"Missing required fields: code='{code or ''}', name='{name or ''}'"
        )

    base_price = parse_number(pick(row, ("Базовая цена", "base_price")))
    if base_price < 0:
        raise ValueError(f"Base price cannot be negative: {base_price}")

    phase = pick(row, ("Фаза", "phase"))
    section = pick(row, ("Раздел", "section"))
    subsection = pick(row, ("Подраздел", "subsection"))

    work = Work(
        id=None,
        code=code,
        name=name,
        unit=pick(row, ("Ед. изм.", "unit")) or "",
        base_price=base_price,
        phase=phase,
        section=section,
        subsection=subsection,
        tenant_id=None if is_global else tenant_id,
        is_global=is_global,
    )

    return ImportRow(
        item=work,
        levels=[level for level in (phase, section, subsection) if level],
        legacy_category=pick(row, ("Категория", "category")),
        line_number=line_number,
    )


def ingest(
    source: TextIO, tenant_id: Optional[str], is_global: bool
) -> ParsedCatalog:
    """
    Ingest a works CSV.

    Expected format:
    - Header row: Код,Наименование,Категория,Ед. изм.,Базовая цена,Фаза,Раздел,Подраздел
      (English aliases code, name, category, unit, base_price, phase,
      section, subsection are accepted)
    - One work per following row

    Rows without code or name, or with a negative price, are rejected and
    listed in the result's errors.

    Raises:
        ValueError: If the file has no header row.
    """
    parsed = read_rows(
        source, CSV_DELIMITER, _CSV_HEADERS, row_to_import_row, tenant_id, is_global
    )
    logger.info(f"Parsed {len(parsed.rows)} works, rejected {len(parsed.errors)}")
    return parsed


def export(works: List[Work], dest: TextIO) -> int:
    """Write works as CSV in the import format.

    Works imported without phase/section/subsection get those columns
    filled from their category breadcrumb.

    Returns:
        Number of rows written.
    """
    writer = csv.writer(dest, delimiter=CSV_DELIMITER)
    writer.writerow(_CSV_HEADERS)

    for w in works:
        levels = [w.phase, w.section, w.subsection]
        if not any(levels):
            levels = split_path(w.category_full_path)
            levels = (levels + [""] * _LEVEL_COUNT)[:_LEVEL_COUNT]
        writer.writerow(
            [
                w.code,
                w.name,
                w.category,
                w.unit,
                w.base_price,
                *[level or "" for level in levels],
            ]
        )

    return len(works)


def template(dest: TextIO) -> None:
    """Write an empty import template with two example rows."""
    writer = csv.writer(dest, delimiter=CSV_DELIMITER)
    writer.writerow(_CSV_HEADERS)
    for example in _TEMPLATE_EXAMPLES:
        writer.writerow(example.split(CSV_DELIMITER))
