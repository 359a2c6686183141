import csv
import logging
import re
from decimal import Decimal, InvalidOperation
from typing import Callable, Dict, Iterable, List, Optional, TextIO

from models.catalog_import import ImportRow, ParsedCatalog, RowError
from models.category import MAX_LEVELS, PATH_SEPARATOR
from models.material import Material

logger = logging.getLogger(__name__)

KIND = "material"

CSV_DELIMITER = ";"

_CSV_HEADERS = [
    "Артикул",
    "Наименование",
    "Единица измерения",
    "Цена",
    "Поставщик",
    "Вес (кг)",
    "Категория LV1",
    "Категория LV2",
    "Категория LV3",
    "Категория LV4",
    "URL товара",
    "URL изображения",
]

_LEVEL_COUNT = MAX_LEVELS[KIND]

# Accepted column names per field, first non-empty wins
_SKU_COLUMNS = ("Артикул", "sku", "SKU", "Код", "код")
_NAME_COLUMNS = ("Наименование", "Название", "name", "Name", "Наименование работ")
_UNIT_COLUMNS = ("Единица измерения", "Ед. изм.", "unit", "Unit")
_PRICE_COLUMNS = ("Цена", "price", "Price")
_SUPPLIER_COLUMNS = ("Поставщик", "Бренд", "supplier", "Supplier")
_WEIGHT_COLUMNS = ("Вес (кг)", "Вес", "weight", "Weight")
_LEVEL_COLUMNS = (
    ("category_lv1", "Категория LV1", "Категория"),
    ("category_lv2", "Категория LV2"),
    ("category_lv3", "Категория LV3"),
    ("category_lv4", "Категория LV4"),
)
_CATEGORY_COLUMNS = ("Категория", "category")
_PRODUCT_URL_COLUMNS = ("URL товара", "Ссылка на товар", "Ссылка", "product_url")
_IMAGE_COLUMNS = (
    "URL изображения",
    "Ссылка на изображение",
    "Изображение",
    "image",
)

_DEFAULT_UNIT = "шт"

_NUMBER_PREFIX = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

_TEMPLATE_EXAMPLES = (
    "MAT-001;Цемент М500;мешок;450;СтройМир;50;Сухие смеси;Цемент;;;;",
    "MAT-002;Кирпич красный;шт;15;КирпичЗавод;3.5;Стеновые материалы;Кирпич;;;;",
)


def parse_number(value: Optional[str]) -> Decimal:
    """Parse a price or weight, accepting comma decimals and spaces.

    The leading number is kept and trailing text ignored, so "450 руб"
    is 450 and "1.234,5" is 1.234. Blank or unparsable values become zero.
    """
    if value is None:
        return Decimal("0")
    normalized = "".join(str(value).replace(",", ".").split())
    match = _NUMBER_PREFIX.match(normalized)
    if not match:
        return Decimal("0")
    try:
        number = Decimal(match.group())
    except InvalidOperation:
        return Decimal("0")
    return number if number.is_finite() else Decimal("0")


def pick(row: Dict[str, str], columns: Iterable[str]) -> Optional[str]:
    """Return the first non-empty, trimmed value among the given columns."""
    for column in columns:
        value = row.get(column)
        if value is not None and value.strip():
            return value.strip()
    return None


def row_to_import_row(
    row: Dict[str, str],
    tenant_id: Optional[str],
    is_global: bool,
    line_number: Optional[int] = None,
) -> ImportRow:
    """Convert a CSV row to an ImportRow holding a Material.

    Args:
        row: CSV row keyed by trimmed header names.
        tenant_id: Tenant the material will belong to.
        is_global: True if the material is imported into the global catalog.
        line_number: Source line, kept for error messages.

    Returns:
        ImportRow with the material and its category levels.

    Raises:
        ValueError: If SKU or name is missing.
    """
    sku = pick(row, _SKU_COLUMNS)
    name = pick(row, _NAME_COLUMNS)
    if not sku or not name:
        raise ValueError(
            f"Missing required fields: sku='{sku or ''}', name='{name or ''}'"
        )

    levels = [pick(row, columns) for columns in _LEVEL_COLUMNS]

    material = Material(
        id=None,
        sku=sku,
        name=name,
        unit=pick(row, _UNIT_COLUMNS) or _DEFAULT_UNIT,
        price=parse_number(pick(row, _PRICE_COLUMNS)),
        supplier=pick(row, _SUPPLIER_COLUMNS) or "",
        weight=parse_number(pick(row, _WEIGHT_COLUMNS)),
        product_url=pick(row, _PRODUCT_URL_COLUMNS) or "",
        image=pick(row, _IMAGE_COLUMNS) or "",
        tenant_id=None if is_global else tenant_id,
        is_global=is_global,
    )

    return ImportRow(
        item=material,
        levels=[level for level in levels if level],
        legacy_category=pick(row, _CATEGORY_COLUMNS),
        line_number=line_number,
    )


def read_rows(
    source: TextIO,
    delimiter: str,
    expected_headers: List[str],
    convert: Callable[..., ImportRow],
    tenant_id: Optional[str],
    is_global: bool,
) -> ParsedCatalog:
    """Read a catalog CSV, converting each non-blank row with ``convert``.

    Headers are trimmed and a leading UTF-8 BOM is dropped. A row that
    ``convert`` rejects with ValueError is logged and reported in the
    result's errors, keyed by its line number.

    Raises:
        ValueError: If the file has no header row.
    """
    parsed = ParsedCatalog()
    reader = csv.DictReader(source, delimiter=delimiter)

    if not reader.fieldnames:
        raise ValueError(f"Could not find a header row.\nExpected: {expected_headers}")
    reader.fieldnames = [
        header.strip().lstrip("\ufeff") for header in reader.fieldnames
    ]

    for record in reader:
        line_num = reader.line_num
        values = {k: v for k, v in record.items() if k is not None and v is not None}
        if not any(v.strip() for v in values.values()):
            continue

        try:
            parsed.rows.append(convert(values, tenant_id, is_global, line_num))
        except ValueError as e:
            logger.warning(f"Rejecting line {line_num}: {e}")
            parsed.errors.append(RowError(key=f"line {line_num}", error=str(e)))

    return parsed


def ingest(
    source: TextIO, tenant_id: Optional[str], is_global: bool
) -> ParsedCatalog:
    """
    Ingest a materials CSV.

    Expected format:
    - Header row with ';' separated column names (Russian or English,
      see _CSV_HEADERS), optionally prefixed with a UTF-8 BOM
    - One material per following row; blank rows are ignored

    Rows without SKU or name are rejected and listed in the result's errors.

    Raises:
        ValueError: If the file has no header row.
    """
    parsed = read_rows(
        source, CSV_DELIMITER, _CSV_HEADERS, row_to_import_row, tenant_id, is_global
    )
    logger.info(f"Parsed {len(parsed.rows)} materials, rejected {len(parsed.errors)}")
    return parsed


def split_path(full_path: Optional[str]) -> List[str]:
    """Split a stored breadcrumb back into level names."""
    if not full_path:
        return []
    return full_path.split(PATH_SEPARATOR)


def export(materials: List[Material], dest: TextIO) -> int:
    """Write materials as CSV in the import format.

    The category breadcrumb is split back into the four level columns,
    falling back to the plain category name.

    Returns:
        Number of rows written.
    """
    writer = csv.writer(dest, delimiter=CSV_DELIMITER)
    writer.writerow(_CSV_HEADERS)

    for m in materials:
        levels = split_path(m.category_full_path) or split_path(m.category)
        levels = (levels + [""] * _LEVEL_COUNT)[:_LEVEL_COUNT]
        writer.writerow(
            [
                m.sku,
                m.name,
                m.unit,
                m.price,
                m.supplier or "",
                m.weight,
                *levels,
                m.product_url or "",
                m.image or "",
            ]
        )

    return len(materials)


def template(dest: TextIO) -> None:
    """Write an empty import template with two example rows."""
    writer = csv.writer(dest, delimiter=CSV_DELIMITER)
    writer.writerow(_CSV_HEADERS)
    for example in _TEMPLATE_EXAMPLES:
        writer.writerow(example.split(CSV_DELIMITER))
