#!/usr/bin/env python3

import sys
from models.category import CATEGORY_TYPES, CategoryScope
from tools.category_tree import build_tree, render_tree
from logger import get_logger

logger = get_logger()


def scope_from_args(args, type: str) -> CategoryScope:
    """Build the category scope selected by --global / --tenant.

    Exits with an error if the combination is invalid.
    """
    try:
        if args.is_global:
            return CategoryScope.shared(type)
        return CategoryScope.for_tenant(args.tenant, type)
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)


def add_scope_arguments(parser):
    """Add the mutually exclusive --global / --tenant options to a parser."""
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument(
        "--global",
        dest="is_global",
        action="store_true",
        help="Use the global (shared) catalog",
    )
    group.add_argument("--tenant", help="Tenant ID owning the private catalog")


def cmd_list(args, services):
    """List categories visible to a tenant as a flat table."""
    categories = services.categories.find_all(args.tenant, args.type)

    if not categories:
        logger.info("No categories found.")
        return

    names = {category.id: category.name for category in categories}

    logger.info(f"\n{args.type.capitalize()} categories:")
    logger.info("=" * 80)
    for category in categories:
        logger.info(f"ID: {category.id}")
        logger.info(f"Name: {category.name}")
        logger.info(f"Scope: {'global' if category.is_global else category.tenant_id}")
        if category.parent_id:
            parent_name = names.get(category.parent_id, "Unknown")
            logger.info(f"Parent: {parent_name} (ID: {category.parent_id})")
        logger.info("-" * 80)

    logger.info(f"\nTotal categories: {len(categories)}")


def cmd_tree(args, services):
    """Show categories visible to a tenant as an indented tree."""
    categories = services.categories.find_all(args.tenant, args.type)

    if not categories:
        logger.info("No categories found.")
        return

    for line in render_tree(build_tree(categories)):
        logger.info(line)


def cmd_resolve(args, services):
    """Find or create a category path and print its leaf ID."""
    scope = scope_from_args(args, args.type)

    try:
        resolved = services.categories.resolve(args.levels, scope)
    except Exception as e:
        logger.error(f"Error resolving category path: {e}")
        sys.exit(1)

    if resolved.id is None:
        logger.error("All levels are blank; nothing to resolve.")
        sys.exit(1)

    logger.info(f"✓ {resolved.full_path}")
    logger.info(f"  ID: {resolved.id}")


def setup_parser(subparsers):
    """Setup categories subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "categories",
        help="Manage categories",
        description="List and resolve hierarchical catalog categories",
    )

    categories_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available category commands",
        dest="subcommand",
        required=True,
    )

    def add_listing_arguments(p):
        p.add_argument(
            "--type", choices=CATEGORY_TYPES, default="material", help="Category type"
        )
        p.add_argument(
            "--tenant", help="Tenant ID (omit to see only global categories)"
        )

    # categories list
    list_parser = categories_subparsers.add_parser(
        "list", help="List categories as a flat table"
    )
    add_listing_arguments(list_parser)
    list_parser.set_defaults(func=cmd_list)

    # categories tree
    tree_parser = categories_subparsers.add_parser(
        "tree", help="Show categories as a tree"
    )
    add_listing_arguments(tree_parser)
    tree_parser.set_defaults(func=cmd_tree)

    # categories resolve
    resolve_parser = categories_subparsers.add_parser(
        "resolve", help="Find or create a category path"
    )
    resolve_parser.add_argument(
        "levels", nargs="+", help="Level names from root to leaf"
    )
    resolve_parser.add_argument(
        "--type", choices=CATEGORY_TYPES, default="material", help="Category type"
    )
    add_scope_arguments(resolve_parser)
    resolve_parser.set_defaults(func=cmd_resolve)
