"""Models describing a catalog CSV import run."""

from dataclasses import dataclass, field
from typing import List, Optional, Union

from models.material import Material
from models.work import Work

CatalogItem = Union[Material, Work]


@dataclass
class ImportRow:
    """A parsed CSV row waiting for its category to be resolved.

    Attributes:
        item: The Material or Work built from the row.
        levels: Category level names in root-to-leaf order, as read from
            the row (blank levels already removed).
        legacy_category: Single-column category, used when no levels exist.
        line_number: Line in the source file, for error messages.
    """

    item: CatalogItem
    levels: List[str]
    legacy_category: Optional[str] = None
    line_number: Optional[int] = None

    @property
    def is_categorized(self) -> bool:
        """True if the row names any category at all."""
        return bool(self.levels) or bool(self.legacy_category)


@dataclass
class RowError:
    """A row that could not be imported."""

    key: str
    error: str


@dataclass
class ImportResult:
    """Outcome of an import run."""

    total: int
    success_count: int = 0
    errors: List[RowError] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return len(self.errors)


@dataclass
class ParsedCatalog:
    """Rows read from a catalog CSV, plus the lines that were rejected.

    Attributes:
        rows: Rows ready to import, in file order.
        errors: One RowError per rejected line, keyed "line N".
    """

    rows: List[ImportRow] = field(default_factory=list)
    errors: List[RowError] = field(default_factory=list)
