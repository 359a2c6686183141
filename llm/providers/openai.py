"""OpenAI provider implementation using structured outputs."""

from typing import List, Optional
from pydantic import BaseModel
from openai import OpenAI
from llm.providers.base import LLMProvider, CategorySuggestion
from llm.prompts.loader import PromptManager
from models.catalog_import import ImportRow
from models.category import MAX_LEVELS
from logger import get_logger

logger = get_logger()

# Keep the prompt bounded on large catalogs
_MAX_CATEGORY_PATHS = 300


# Pydantic models for structured output
class ItemCategorization(BaseModel):
    """Single catalog item categorization result."""

    item_key: str
    levels: List[str]
    reasoning: Optional[str] = None


class CategorizationResponse(BaseModel):
    """Full categorization response with all items."""

    categorizations: List[ItemCategorization]


class OpenAIProvider(LLMProvider):
    """OpenAI implementation using structured outputs for reliable JSON parsing."""

    def __init__(self, api_key: str, model: Optional[str] = None):
        """Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key.
            model: Model to use (e.g., "gpt-4o-mini"). If None, uses prompt default.
        """
        self.client = OpenAI(api_key=api_key)
        self.model = model
        self.prompt_manager = PromptManager()

    def suggest_categories(
        self,
        rows: List[ImportRow],
        category_paths: List[str],
        kind: str,
    ) -> List[CategorySuggestion]:
        """Suggest category paths using OpenAI with structured outputs.

        Raises:
            Exception: If OpenAI API call fails.
        """
        if not rows:
            return []

        logger.info(
            f"Calling OpenAI to categorize {len(rows)} {kind} row(s) "
            f"against {len(category_paths)} existing categories"
        )

        rendered_prompt = self.prompt_manager.render_prompt(
            "categorization",
            {
                "kind": kind,
                "max_levels": MAX_LEVELS[kind],
                "categories": self._format_categories(category_paths),
                "items": self._format_items(rows),
            },
        )

        model = self.model or rendered_prompt["parameters"].get("model", "gpt-4o-mini")
        temperature = rendered_prompt["parameters"].get("temperature", 0.1)
        max_tokens = rendered_prompt["parameters"].get("max_tokens", 4000)

        logger.info(
            f"Using model: {model}, prompt version: {rendered_prompt['version']}"
        )

        try:
            response = self.client.chat.completions.parse(
                model=model,
                messages=[
                    {"role": "system", "content": rendered_prompt["system_prompt"]},
                    {"role": "user", "content": rendered_prompt["user_prompt"]},
                ],
                temperature=temperature,
                max_tokens=max_tokens,
                response_format=CategorizationResponse,
            )
        except Exception as e:
            logger.error(f"OpenAI API error: {e}")
            raise

        result = response.choices[0].message.parsed
        if result is None:
            logger.warning("OpenAI returned null parsed response")
            return []

        suggestions = [
            CategorySuggestion(
                item_key=cat.item_key,
                levels=[level.strip() for level in cat.levels if level.strip()],
                reasoning=cat.reasoning,
            )
            for cat in result.categorizations
        ]

        logger.info(
            f"Received {len([s for s in suggestions if s.levels])} suggestion(s) "
            f"for {len(rows)} row(s)"
        )

        return suggestions

    def _format_categories(self, category_paths: List[str]) -> str:
        """Format existing category paths for the prompt."""
        if not category_paths:
            return "No categories exist yet."

        return "\n".join(f"- {path}" for path in category_paths[:_MAX_CATEGORY_PATHS])

    def _format_items(self, rows: List[ImportRow]) -> str:
        """Format the rows to categorize."""
        lines = []
        for row in rows:
            item = row.item
            lines.append(
                f"- Key: {item.import_key}, Name: '{item.name}', Unit: {item.unit}"
            )

        return "\n".join(lines)
