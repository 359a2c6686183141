"""Category tree assembly from the flat listing returned by CategoryService."""

from dataclasses import dataclass, field
from typing import Dict, List

from models.category import CategoryNode, PATH_SEPARATOR


@dataclass
class CategoryTreeNode:
    """A category together with its children, for display."""

    category: CategoryNode
    children: List["CategoryTreeNode"] = field(default_factory=list)


def build_tree(nodes: List[CategoryNode]) -> List[CategoryTreeNode]:
    """Assemble a flat category list into a forest.

    Nodes are indexed by id; a node whose parent is missing from the list
    is treated as a root. Siblings are ordered by name.

    Args:
        nodes: Flat list, e.g. from CategoryService.find_all.

    Returns:
        List of root CategoryTreeNode objects.
    """
    by_id: Dict[str, CategoryTreeNode] = {
        node.id: CategoryTreeNode(category=node) for node in nodes
    }

    roots = []
    for tree_node in by_id.values():
        parent_id = tree_node.category.parent_id
        if parent_id is not None and parent_id in by_id:
            by_id[parent_id].children.append(tree_node)
        else:
            roots.append(tree_node)

    for tree_node in by_id.values():
        tree_node.children.sort(key=lambda child: child.category.name)
    roots.sort(key=lambda root: root.category.name)

    return roots


def category_paths(nodes: List[CategoryNode], leaves_only: bool = True) -> List[str]:
    """List the " / " joined breadcrumb of every category in the forest.

    Args:
        nodes: Flat category list.
        leaves_only: If True, only categories without children are listed.

    Returns:
        Breadcrumbs in depth-first, name order.
    """
    paths = []

    def walk(tree_node: CategoryTreeNode, prefix: List[str]):
        parts = prefix + [tree_node.category.name]
        if not leaves_only or not tree_node.children:
            paths.append(PATH_SEPARATOR.join(parts))
        for child in tree_node.children:
            walk(child, parts)

    for root in build_tree(nodes):
        walk(root, [])

    return paths


def render_tree(roots: List[CategoryTreeNode], indent: str = "  ") -> List[str]:
    """Render a forest as indented lines, marking global categories."""
    lines = []

    def walk(tree_node: CategoryTreeNode, depth: int):
        marker = " [global]" if tree_node.category.is_global else ""
        lines.append(f"{indent * depth}{tree_node.category.name}{marker}")
        for child in tree_node.children:
            walk(child, depth + 1)

    for root in roots:
        walk(root, 0)

    return lines
