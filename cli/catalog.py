#!/usr/bin/env python3

import sys
import gzip
import shutil
from pathlib import Path
from datetime import datetime
from cli.categories import add_scope_arguments, scope_from_args
from ingestion import get_ingestion_module, get_available_modules
from services.imports import IMPORT_MODES
from logger import get_logger

logger = get_logger()

# CSV files are exchanged with spreadsheet tools that expect a BOM
_CSV_ENCODING = "utf-8-sig"

_MAX_REPORTED_ERRORS = 100


def _catalog_service(services, catalog_name: str):
    return services.materials if catalog_name == "materials" else services.works


def _archive(csv_path: Path, label: str, config) -> Path:
    """Gzip a copy of an imported file into the archive directory."""
    config.archive_dir.mkdir(parents=True, exist_ok=True)

    # {label}_{timestamp}_{original_filename}.gz
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    archive_path = config.archive_dir / f"{label}_{timestamp}_{csv_path.name}.gz"

    with open(csv_path, "rb") as f_in:
        with gzip.open(archive_path, "wb") as f_out:
            shutil.copyfileobj(f_in, f_out)

    return archive_path


def cmd_import(args, services):
    """Import a catalog CSV into the global or a tenant catalog.

    Args:
        args: Parsed command-line arguments with csv_file, scope and mode
        services: Services container
    """
    csv_path = Path(args.csv_file)
    if not csv_path.exists():
        logger.error(f"File not found: {args.csv_file}")
        sys.exit(1)

    module = get_ingestion_module(args.command)
    scope = scope_from_args(args, module.KIND)

    logger.info(
        f"Importing {args.command} into "
        f"{'the global catalog' if scope.is_global else f'tenant {scope.tenant_id}'}"
    )
    logger.info(f"CSV file: {args.csv_file}")
    logger.info(f"Mode: {args.mode}")
    logger.info("-" * 80)

    try:
        with open(csv_path, "r", encoding=_CSV_ENCODING, newline="") as f:
            parsed = module.ingest(f, scope.tenant_id, scope.is_global)

        logger.info(
            f"\nParsed {len(parsed.rows)} rows from CSV, "
            f"rejected {len(parsed.errors)}"
        )

        if not parsed.rows and not parsed.errors:
            logger.info("No rows to import.")
            return

        result = services.imports.import_rows(
            parsed.rows, scope, args.mode, parsed.errors
        )
    except Exception as e:
        logger.error(f"Error during import: {e}")
        sys.exit(1)

    logger.info(f"✓ Imported {result.success_count} of {result.total} row(s)")
    if result.errors:
        logger.warning(f"  {result.error_count} row(s) failed:")
        for error in result.errors[:_MAX_REPORTED_ERRORS]:
            logger.warning(f"  {error.key}: {error.error}")

    config = services.config
    if config.archive_enabled:
        label = "global" if scope.is_global else scope.tenant_id
        archive_path = _archive(csv_path, f"{args.command}_{label}", config)
        logger.info(f"Archived CSV to: {archive_path}")


def cmd_export(args, services):
    """Export a catalog to CSV in the import format."""
    module = get_ingestion_module(args.command)
    catalog = _catalog_service(services, args.command)

    items = catalog.find_all(args.tenant, args.is_global)

    try:
        with open(args.csv_file, "w", encoding=_CSV_ENCODING, newline="") as f:
            count = module.export(items, f)
    except OSError as e:
        logger.error(f"Error writing {args.csv_file}: {e}")
        sys.exit(1)

    logger.info(f"✓ Exported {count} {args.command} to {args.csv_file}")


def cmd_template(args, services):
    """Write an import template with example rows."""
    module = get_ingestion_module(args.command)

    try:
        with open(args.csv_file, "w", encoding=_CSV_ENCODING, newline="") as f:
            module.template(f)
    except OSError as e:
        logger.error(f"Error writing {args.csv_file}: {e}")
        sys.exit(1)

    logger.info(f"✓ Template written to {args.csv_file}")


def cmd_list(args, services):
    """List catalog items visible to a tenant."""
    catalog = _catalog_service(services, args.command)
    items = catalog.find_all(args.tenant, args.is_global)

    if not items:
        logger.info(f"No {args.command} found.")
        return

    logger.info(f"\n{args.command.capitalize()}:")
    logger.info("=" * 80)
    for item in items:
        scope = "global" if item.is_global else item.tenant_id
        logger.info(f"{item.import_key}  {item.name}  [{item.unit}]  ({scope})")
        if item.category_full_path:
            logger.info(f"  Category: {item.category_full_path}")

    logger.info(f"\nTotal {args.command}: {len(items)}")


def _add_visibility_arguments(parser):
    parser.add_argument("--tenant", help="Tenant ID (omit for global items only)")
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "--global-only",
        dest="is_global",
        action="store_const",
        const=True,
        help="Only global items",
    )
    group.add_argument(
        "--tenant-only",
        dest="is_global",
        action="store_const",
        const=False,
        help="Only the tenant's private items",
    )
    parser.set_defaults(is_global=None)


def setup_parser(subparsers):
    """Setup one command per catalog (materials, works).

    Args:
        subparsers: The subparsers object from the main CLI
    """
    for catalog_name in get_available_modules():
        parser = subparsers.add_parser(
            catalog_name,
            help=f"Manage the {catalog_name} catalog",
            description=f"Import, export and list {catalog_name}",
        )

        catalog_subparsers = parser.add_subparsers(
            title="subcommands",
            description=f"Available {catalog_name} commands",
            dest="subcommand",
            required=True,
        )

        import_parser = catalog_subparsers.add_parser(
            "import", help=f"Import {catalog_name} from CSV"
        )
        import_parser.add_argument("csv_file", help="Path to the CSV file")
        add_scope_arguments(import_parser)
        import_parser.add_argument(
            "--mode",
            choices=IMPORT_MODES,
            default="append",
            help="append keeps existing items, replace clears the scope first",
        )
        import_parser.set_defaults(func=cmd_import)

        export_parser = catalog_subparsers.add_parser(
            "export", help=f"Export {catalog_name} to CSV"
        )
        export_parser.add_argument("csv_file", help="Destination CSV file")
        _add_visibility_arguments(export_parser)
        export_parser.set_defaults(func=cmd_export)

        template_parser = catalog_subparsers.add_parser(
            "template", help="Write an import template"
        )
        template_parser.add_argument("csv_file", help="Destination CSV file")
        template_parser.set_defaults(func=cmd_template)

        list_parser = catalog_subparsers.add_parser(
            "list", help=f"List {catalog_name}"
        )
        _add_visibility_arguments(list_parser)
        list_parser.set_defaults(func=cmd_list)
