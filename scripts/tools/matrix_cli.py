"""
CLI tool for exporting, importing and inspecting the motion delta matrix.

Usage examples:
    # Export the matrix as TSV from the admin API
    python -m scripts.tools.matrix_cli export --output matrix.tsv

    # Export as CSV from a local JSON dump of the tables
    python -m scripts.tools.matrix_cli --data tables.json export --format csv

    # Import edited TSV/CSV back
    python -m scripts.tools.matrix_cli import --file matrix.tsv

    # Show a motion's relationships
    python -m scripts.tools.matrix_cli show CURL

    # List motions grouped by primary muscle
    python -m scripts.tools.matrix_cli groups
"""
import argparse
import asyncio
import json
import sys
from contextlib import asynccontextmanager
from pathlib import Path

from deltamatrix.config.delta_tables import get_table_label
from deltamatrix.core.exceptions import DomainError
from deltamatrix.core.logging import configure_logging
from deltamatrix.exchange.delimited import COMMA, TAB
from deltamatrix.repositories.http import HttpTableGateway
from deltamatrix.repositories.memory import InMemoryTableGateway
from deltamatrix.scoring.grouping import SectionHeader
from deltamatrix.scoring.hierarchy import level_of
from deltamatrix.services.matrix_service import MotionDeltaMatrixService


@asynccontextmanager
async def open_service(args):
    """Matrix service over a JSON data file (``--data``) or the admin API.

    With ``--data``, tables are written back to the file after a successful command.
    """
    if args.data:
        with open(args.data, "r", encoding="utf-8") as f:
            gateway = InMemoryTableGateway(json.load(f))
    else:
        gateway = HttpTableGateway(base_url=args.api_url)

    service = MotionDeltaMatrixService(gateway)
    try:
        yield service
        if args.data and isinstance(gateway, InMemoryTableGateway) and gateway.writes:
            with open(args.data, "w", encoding="utf-8") as f:
                json.dump(gateway.tables, f, indent=2, ensure_ascii=False)
    finally:
        await service.close()


async def export_command(args):
    """Handle export command."""
    async with open_service(args) as service:
        text = await service.export_text(COMMA if args.format == "csv" else TAB)

    if args.output:
        Path(args.output).write_text(text, encoding="utf-8", newline="")
        print(f"\n✅ Exported matrix to {args.output}")
    else:
        print(text)


async def import_command(args):
    """Handle import command."""
    text = Path(args.file).read_text(encoding="utf-8")
    async with open_service(args) as service:
        try:
            result = await service.import_text(text)
        except DomainError as e:
            print(f"\n❌ {e.message}")
            sys.exit(1)

    print("\n=== Import Results ===")
    print(f"Rows updated: {result.updated}")
    if result.errors:
        print(f"\n⚠️  {len(result.errors)} problem(s):")
        for error in result.errors:
            print(f"  {error}")


async def show_command(args):
    """Handle show command."""
    async with open_service(args) as service:
        try:
            motion = await service.get_motion(args.motion)
        except DomainError:
            print(f"\n❌ Motion not found: {args.motion}")
            sys.exit(1)
        relationships = await service.relationships_for(motion.id)
        grouping = await service.effective_grouping(motion.id)
        catalog = (await service.ensure_loaded()).muscles

    print(f"\n=== {motion.label} ({motion.id}) ===")
    print(f"Parent: {motion.parent_id or '-'}")
    if grouping:
        print(f"Grouping: {grouping} ({level_of(grouping, catalog)})")
    else:
        print("Grouping: -")
    if not relationships:
        print("\nNo delta rules reference this motion.")
        return
    for table_key, rels in relationships.items():
        print(f"\n{get_table_label(table_key)} ({len(rels)})")
        for rel in rels:
            print(f"  {rel.row_label}: {json.dumps(rel.value.to_raw())}")


async def groups_command(args):
    """Handle groups command."""
    async with open_service(args) as service:
        items = await service.grouped_motions()

    for item in items:
        indent = "  " * item.level
        if isinstance(item, SectionHeader):
            print(f"{indent}== {item.label} ==")
        else:
            print(f"{indent}{item.motion.label} ({item.motion.id})")


def create_parser() -> argparse.ArgumentParser:
    """Create CLI argument parser."""
    parser = argparse.ArgumentParser(
        description="Motion Delta Matrix CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Export as TSV to stdout
  python -m scripts.tools.matrix_cli export

  # Export as CSV from a local JSON dump
  python -m scripts.tools.matrix_cli --data tables.json export --format csv

  # Import from file
  python -m scripts.tools.matrix_cli import --file matrix.tsv

  # Show one motion
  python -m scripts.tools.matrix_cli show CURL
        """
    )
    parser.add_argument(
        "--data",
        help="JSON file of tables ({\"muscles\": [...], \"motions\": [...], \"grips\": [...]}) used instead of the admin API"
    )
    parser.add_argument(
        "--api-url",
        help="Admin API base URL (defaults to DELTAMATRIX_ADMIN_API_BASE_URL)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # export command
    export_parser = subparsers.add_parser(
        "export",
        help="Export the whole matrix as delimited text"
    )
    export_parser.add_argument(
        "--format",
        choices=["tsv", "csv"],
        default="tsv",
        help="Output format (default: tsv)"
    )
    export_parser.add_argument(
        "--output", "-o",
        help="Write to this file instead of stdout"
    )
    export_parser.set_defaults(func=export_command)

    # import command
    import_parser = subparsers.add_parser(
        "import",
        help="Import delimited text produced by export"
    )
    import_parser.add_argument(
        "--file", "-f",
        required=True,
        help="TSV or CSV file with a motion_id column and table columns"
    )
    import_parser.set_defaults(func=import_command)

    # show command
    show_parser = subparsers.add_parser(
        "show",
        help="Show the delta rules referencing a motion"
    )
    show_parser.add_argument(
        "motion",
        help="Motion id"
    )
    show_parser.set_defaults(func=show_command)

    # groups command
    subparsers.add_parser(
        "groups",
        help="List motions grouped by primary muscle"
    ).set_defaults(func=groups_command)

    return parser


def main():
    """Main entry point for CLI."""
    parser = create_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    configure_logging(stream=sys.stderr)
    asyncio.run(args.func(args))


if __name__ == "__main__":
    main()
