from models.category import CategoryNode
from tools.category_tree import build_tree, category_paths, render_tree


def node(id, name, parent_id=None, is_global=False):
    return CategoryNode(
        id=id,
        name=name,
        type="material",
        parent_id=parent_id,
        tenant_id=None if is_global else "acme",
        is_global=is_global,
    )


NODES = [
    node("1", "Сухие смеси", is_global=True),
    node("2", "Цемент", parent_id="1", is_global=True),
    node("3", "Гипс", parent_id="1", is_global=True),
    node("4", "Краски"),
    node("5", "Грунт", parent_id="3", is_global=True),
]


class TestBuildTree:
    """Tests for build_tree function."""

    def test_roots_and_children_sorted_by_name(self):
        """Test that roots and siblings are name-ordered."""
        roots = build_tree(NODES)

        assert [root.category.name for root in roots] == ["Краски", "Сухие смеси"]
        dry = roots[1]
        assert [child.category.name for child in dry.children] == ["Гипс", "Цемент"]
        assert dry.children[0].children[0].category.name == "Грунт"

    def test_orphan_becomes_root(self):
        """Test that a node whose parent is not listed is a root."""
        roots = build_tree([node("9", "Сирота", parent_id="missing")])

        assert [root.category.id for root in roots] == ["9"]

    def test_empty(self):
        assert build_tree([]) == []


class TestCategoryPaths:
    """Tests for category_paths function."""

    def test_leaf_paths(self):
        """Test that only leaves are listed by default."""
        assert category_paths(NODES) == [
            "Краски",
            "Сухие смеси / Гипс / Грунт",
            "Сухие смеси / Цемент",
        ]

    def test_all_paths(self):
        """Test listing every node's breadcrumb."""
        assert category_paths(NODES, leaves_only=False) == [
            "Краски",
            "Сухие смеси",
            "Сухие смеси / Гипс",
            "Сухие смеси / Гипс / Грунт",
            "Сухие смеси / Цемент",
        ]


class TestRenderTree:
    """Tests for render_tree function."""

    def test_render_marks_global(self):
        """Test indentation and the global marker."""
        lines = render_tree(build_tree(NODES))

        assert lines == [
            "Краски",
            "Сухие смеси [global]",
            "  Гипс [global]",
            "    Грунт [global]",
            "  Цемент [global]",
        ]
