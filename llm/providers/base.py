"""Base provider interface for LLM implementations."""

from abc import ABC, abstractmethod
from typing import List, Optional
from dataclasses import dataclass, field
from models.catalog_import import ImportRow


@dataclass
class CategorySuggestion:
    """Represents a category suggestion for a catalog item."""

    item_key: str  # SKU for materials, code for works
    levels: List[str] = field(default_factory=list)  # root-to-leaf, empty if unsure
    reasoning: Optional[str] = None  # Why this category was chosen


class LLMProvider(ABC):
    """Abstract base class for LLM providers.

    Each provider can implement categorization in its own optimal way,
    using provider-specific features like structured outputs, thinking, etc.
    """

    @abstractmethod
    def suggest_categories(
        self,
        rows: List[ImportRow],
        category_paths: List[str],
        kind: str,
    ) -> List[CategorySuggestion]:
        """Suggest a category path for each uncategorized import row.

        Args:
            rows: Rows to categorize.
            category_paths: Existing " / " joined category paths for the
                same type and scope; suggestions should reuse them.
            kind: Category type of the rows ("material" or "work").

        Returns:
            List of CategorySuggestion objects, one per row. A suggestion
            with no levels means the provider could not decide.

        Raises:
            Exception: If LLM API call fails.
        """
        pass
