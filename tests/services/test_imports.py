import io
from decimal import Decimal

import pytest

import ingestion.materials as materials
import ingestion.works as works
from llm.providers.base import CategorySuggestion, LLMProvider
from models.catalog_import import ImportRow
from models.category import CategoryScope
from models.material import Material
from tests.helpers import count_rows, csv_source

MATERIALS_HEADER = (
    "Артикул;Наименование;Единица измерения;Цена;Поставщик;Вес (кг);"
    "Категория LV1;Категория LV2;Категория LV3;Категория LV4;URL товара;URL изображения"
)

ACME_MATERIALS = CategoryScope.for_tenant("acme", "material")


def parse_materials(*lines, tenant_id="acme", is_global=False):
    source = csv_source(MATERIALS_HEADER, *lines)
    return materials.ingest(source, tenant_id, is_global).rows


class TestImportService:
    """Tests for ImportService.import_rows."""

    def test_import_resolves_categories(self, services):
        """Test that imported materials are attached to resolved leaves."""
        rows = parse_materials(
            "MAT-001;Цемент М500;мешок;450;СтройМир;50;Сухие смеси;Цемент;;;;",
            "MAT-002;Гипс;мешок;300;СтройМир;30;Сухие смеси;Гипс;;;;",
        )

        result = services.imports.import_rows(rows, ACME_MATERIALS)

        assert result.success_count == 2
        assert result.error_count == 0
        assert result.total == 2

        items = {m.sku: m for m in services.materials.find_all("acme", False)}
        assert items["MAT-001"].category == "Цемент"
        assert items["MAT-001"].category_full_path == "Сухие смеси / Цемент"
        assert items["MAT-002"].category_full_path == "Сухие смеси / Гипс"

        leaf = services.categories.find(items["MAT-001"].category_id, "acme")
        assert leaf.name == "Цемент"
        assert len(services.categories.find_all("acme", "material")) == 3

    def test_import_reuses_categories_across_runs(self, services):
        """Test that importing twice does not duplicate categories."""
        line = "MAT-001;Цемент М500;мешок;450;;;Сухие смеси;Цемент;;;;"

        services.imports.import_rows(parse_materials(line), ACME_MATERIALS)
        services.imports.import_rows(parse_materials(line), ACME_MATERIALS)

        assert len(services.categories.find_all("acme", "material")) == 2
        ids = {m.category_id for m in services.materials.find_all("acme")}
        assert len(ids) == 1

    def test_import_resolves_each_path_once(self, services, monkeypatch):
        """Test that rows sharing a path resolve it only once per run."""
        rows = parse_materials(
            "MAT-001;A;шт;1;;;Смеси;;;;;",
            "MAT-002;B;шт;1;;;Смеси;;;;;",
            "MAT-003;C;шт;1;;;Кирпич;;;;;",
        )
        resolved_levels = []
        real_resolve = services.categories.resolve

        def counting_resolve(levels, scope):
            resolved_levels.append(list(levels))
            return real_resolve(levels, scope)

        monkeypatch.setattr(services.categories, "resolve", counting_resolve)

        services.imports.import_rows(rows, ACME_MATERIALS)

        assert resolved_levels == [["Смеси"], ["Кирпич"]]

    def test_uncategorized_rows_use_default_category(self, services):
        """Test that rows without any category go under the default one."""
        rows = parse_materials("MAT-001;Гвозди;кг;200;;;;;;;;")

        services.imports.import_rows(rows, ACME_MATERIALS)

        [material] = services.materials.find_all("acme")
        assert material.category == "Прочее"
        assert material.category_full_path == "Прочее"

    def test_legacy_category_used_when_no_levels(self, services):
        """Test that the single category column is used without levels."""
        rows = [
            ImportRow(
                item=Material(id=None, sku="MAT-001", name="Гвозди"),
                levels=[],
                legacy_category="Крепёж",
            )
        ]

        services.imports.import_rows(rows, ACME_MATERIALS)

        [material] = services.materials.find_all("acme")
        assert material.category_full_path == "Крепёж"

    def test_sparse_levels_collapse(self, services):
        """Test that a gap between level columns does not create a node."""
        rows = parse_materials("MAT-001;Гипс;мешок;300;;;Строительство;;Гипс;;;")

        services.imports.import_rows(rows, ACME_MATERIALS)

        [material] = services.materials.find_all("acme")
        assert material.category_full_path == "Строительство / Гипс"
        assert len(services.categories.find_all("acme", "material")) == 2

    def test_global_import(self, services):
        """Test importing into the global catalog."""
        rows = parse_materials(
            "MAT-001;Цемент;мешок;450;;;Смеси;;;;;", tenant_id=None, is_global=True
        )

        services.imports.import_rows(rows, CategoryScope.shared("material"))

        [material] = services.materials.find_all("anyone")
        assert material.is_global is True
        assert material.tenant_id is None
        [category] = services.categories.find_all("anyone", "material")
        assert category.is_global is True

    def test_replace_mode_clears_scope_first(self, services):
        """Test that replace mode deletes the scope's existing items."""
        services.imports.import_rows(
            parse_materials("OLD-001;Старый;шт;1;;;Смеси;;;;;"), ACME_MATERIALS
        )

        result = services.imports.import_rows(
            parse_materials("NEW-001;Новый;шт;1;;;Смеси;;;;;"),
            ACME_MATERIALS,
            mode="replace",
        )

        assert result.success_count == 1
        assert [m.sku for m in services.materials.find_all("acme")] == ["NEW-001"]

    def test_replace_mode_keeps_other_scopes(self, services):
        """Test that replacing a tenant catalog leaves global items alone."""
        services.imports.import_rows(
            parse_materials("G-001;Общий;шт;1;;;Смеси;;;;;", tenant_id=None, is_global=True),
            CategoryScope.shared("material"),
        )

        services.imports.import_rows(
            parse_materials("A-001;Свой;шт;1;;;Смеси;;;;;"),
            ACME_MATERIALS,
            mode="replace",
        )

        assert {m.sku for m in services.materials.find_all("acme")} == {"G-001", "A-001"}

    def test_failed_rows_are_reported(self, services, monkeypatch):
        """Test that a failing row is recorded and the run continues."""
        rows = parse_materials(
            "MAT-001;A;шт;1;;;Смеси;;;;;",
            "MAT-002;B;шт;1;;;Смеси;;;;;",
        )
        real_create = services.materials.create

        def failing_create(material):
            if material.sku == "MAT-001":
                raise Exception("disk full")
            return real_create(material)

        monkeypatch.setattr(services.materials, "create", failing_create)

        result = services.imports.import_rows(rows, ACME_MATERIALS)

        assert result.success_count == 1
        assert result.error_count == 1
        assert result.errors[0].key == "MAT-001"
        assert result.errors[0].error == "disk full"

    def test_rejected_lines_are_reported(self, services):
        """Test that lines the parser rejected count as failed rows."""
        parsed = works.ingest(
            csv_source(
                "Код,Наименование,Базовая цена",
                "01,Good,10",
                "02,Bad,-5",
            ),
            "acme",
            False,
        )

        result = services.imports.import_rows(
            parsed.rows, CategoryScope.for_tenant("acme", "work"), rejected=parsed.errors
        )

        assert result.total == 2
        assert result.success_count == 1
        [error] = result.errors
        assert error.key == "line 3"
        assert "Base price cannot be negative" in error.error

    def test_replace_refused_when_lines_rejected(self, services):
        """Test that replace mode deletes nothing if any line was rejected."""
        services.imports.import_rows(
            parse_materials("OLD-001;Старый;шт;1;;;Смеси;;;;;"), ACME_MATERIALS
        )
        parsed = materials.ingest(
            csv_source(
                MATERIALS_HEADER,
                "NEW-001;Новый;шт;1;;;Смеси;;;;;",
                ";Без артикула;шт;1;;;;;;;;",
            ),
            "acme",
            False,
        )

        with pytest.raises(ValueError, match="could not be parsed"):
            services.imports.import_rows(
                parsed.rows, ACME_MATERIALS, mode="replace", rejected=parsed.errors
            )

        assert [m.sku for m in services.materials.find_all("acme")] == ["OLD-001"]

    def test_level_names_containing_separator(self, services):
        """Test that ["A > B"] and ["A", "B"] resolve to different leaves."""
        rows = [
            ImportRow(item=Material(id=None, sku="MAT-001", name="X"), levels=["A > B"]),
            ImportRow(item=Material(id=None, sku="MAT-002", name="Y"), levels=["A", "B"]),
        ]

        services.imports.import_rows(rows, ACME_MATERIALS)

        paths = {m.sku: m.category_full_path for m in services.materials.find_all("acme")}
        assert paths == {"MAT-001": "A > B", "MAT-002": "A / B"}

    def test_unknown_mode_raises_error(self, services):
        """Test that only append and replace are accepted."""
        with pytest.raises(ValueError, match="Unknown import mode: merge"):
            services.imports.import_rows([], ACME_MATERIALS, mode="merge")

    def test_row_limit_enforced(self, services):
        """Test that oversized imports are refused before touching data."""
        services.config.import_max_rows = 1
        rows = parse_materials(
            "MAT-001;A;шт;1;;;;;;;;",
            "MAT-002;B;шт;1;;;;;;;;",
        )

        with pytest.raises(ValueError, match="Import limit exceeded"):
            services.imports.import_rows(rows, ACME_MATERIALS)

        assert count_rows(services, "materials") == 0

    def test_import_works_by_phase_section_subsection(self, services):
        """Test that work levels come from phase, section and subsection."""
        rows = works.ingest(
            csv_source(
                "Код,Наименование,Категория,Ед. изм.,Базовая цена,Фаза,Раздел,Подраздел",
                "02-001,Штукатурка стен,Штукатурка,м2,520,Черновые работы,Стены,Штукатурка",
            ),
            None,
            True,
        ).rows

        services.imports.import_rows(rows, CategoryScope.shared("work"))

        [work] = services.works.find_all(None)
        assert work.base_price == Decimal("520")
        assert work.category == "Штукатурка"
        assert work.category_full_path == "Черновые работы / Стены / Штукатурка"
        assert services.categories.find_all(None, "material") == []
        assert len(services.categories.find_all(None, "work")) == 3


class FakeProvider(LLMProvider):
    """Provider returning canned suggestions."""

    def __init__(self, levels_by_key):
        self.levels_by_key = levels_by_key
        self.calls = []

    def suggest_categories(self, rows, category_paths, kind):
        self.calls.append(([row.item.import_key for row in rows], category_paths, kind))
        return [
            CategorySuggestion(item_key=key, levels=levels)
            for key, levels in self.levels_by_key.items()
        ]


class TestImportWithLLM:
    """Tests for LLM-assisted categorization during import."""

    def test_uncategorized_rows_take_suggestions(self, services, monkeypatch):
        """Test that suggestions replace the default category."""
        provider = FakeProvider({"MAT-002": ["Крепёж", "Гвозди"]})
        monkeypatch.setattr("categorization.get_llm_provider", lambda config: provider)
        services.config.llm_enabled = True

        rows = parse_materials(
            "MAT-001;Цемент;мешок;450;;;Смеси;;;;;",
            "MAT-002;Гвозди 100мм;кг;200;;;;;;;;",
            "MAT-003;Неизвестно что;шт;1;;;;;;;;",
        )

        services.imports.import_rows(rows, ACME_MATERIALS)

        paths = {m.sku: m.category_full_path for m in services.materials.find_all("acme")}
        assert paths == {
            "MAT-001": "Смеси",
            "MAT-002": "Крепёж / Гвозди",
            "MAT-003": "Прочее",
        }
        [(keys, _, kind)] = provider.calls
        assert keys == ["MAT-002", "MAT-003"]
        assert kind == "material"

    def test_provider_sees_paths_of_import_scope_only(self, services, monkeypatch):
        """Test that only categories of the target scope are offered."""
        services.categories.resolve(["Общие", "Смеси"], CategoryScope.shared("material"))
        services.categories.resolve(["Свои", "Краски"], ACME_MATERIALS)
        provider = FakeProvider({})
        monkeypatch.setattr("categorization.get_llm_provider", lambda config: provider)
        services.config.llm_enabled = True

        services.imports.import_rows(
            parse_materials("MAT-001;Что-то;шт;1;;;;;;;;"), ACME_MATERIALS
        )

        [(_, category_paths, _)] = provider.calls
        assert category_paths == ["Свои / Краски"]

    def test_llm_disabled_skips_provider(self, services, monkeypatch):
        """Test that the provider is never built when LLM is disabled."""

        def fail(config):
            raise AssertionError("provider should not be created")

        monkeypatch.setattr("categorization.get_llm_provider", fail)

        result = services.imports.import_rows(
            parse_materials("MAT-001;Что-то;шт;1;;;;;;;;"), ACME_MATERIALS
        )

        assert result.success_count == 1

    def test_deep_work_suggestion_survives_export(self, services, monkeypatch):
        """Test that a suggested work path fits the three CSV level columns."""
        provider = FakeProvider({"01-001": ["A", "B", "C", "D"]})
        monkeypatch.setattr("categorization.get_llm_provider", lambda config: provider)
        services.config.llm_enabled = True
        scope = CategoryScope.shared("work")
        header = "Код,Наименование,Категория,Ед. изм.,Базовая цена,Фаза,Раздел,Подраздел"
        rows = works.ingest(csv_source(header, "01-001,Демонтаж,,м2,350,,,"), None, True).rows

        services.imports.import_rows(rows, scope)

        [work] = services.works.find_all(None)
        assert work.category_full_path == "A / B / C"

        dest = io.StringIO()
        works.export([work], dest)
        services.config.llm_enabled = False
        [row] = works.ingest(io.StringIO(dest.getvalue()), None, True).rows
        assert services.categories.resolve(row.levels, scope).id == work.category_id
