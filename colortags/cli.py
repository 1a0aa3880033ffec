"""
ColorTags - Console Application

Usage:
    python -m colortags browse /path/to/directory
    python -m colortags tag red a.txt b.txt
    python -m colortags untag a.txt
    python -m colortags show [red]
    python -m colortags colors
"""
import sys
import asyncio
import argparse
import os
from collections import defaultdict
from typing import Dict, List, Optional

from loguru import logger

from colortags.core.bootstrap import ApplicationBuilder, run_app
from colortags.core.locator import ServiceLocator
from colortags.tags.service import TagService
from colortags.ui.controller import ColorTagsController
from colortags.ui.listing import DirectoryListing


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="colortags",
        description="ColorTags - color labels for files"
    )
    parser.add_argument("--config", default="config.json", help="Config file (JSON or TOML)")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    browse_parser = subparsers.add_parser("browse", help="Open the listing browser")
    browse_parser.add_argument("directory", nargs="?", default=".", help="Directory to list")

    tag_parser = subparsers.add_parser("tag", help="Tag files with a color")
    tag_parser.add_argument("color", help="Color name or #RRGGBB")
    tag_parser.add_argument("files", nargs="+", help="Files to tag")

    untag_parser = subparsers.add_parser("untag", help="Remove color tags")
    untag_parser.add_argument("files", nargs="+", help="Files to untag")

    show_parser = subparsers.add_parser("show", help="Show tagged files")
    show_parser.add_argument("color", nargs="?", help="Only files with this color")

    subparsers.add_parser("colors", help="List colors in use")

    return parser


def _group_by_directory(files: List[str]) -> Dict[str, List[str]]:
    groups: Dict[str, List[str]] = defaultdict(list)
    for path in files:
        path = os.path.abspath(path)
        groups[os.path.dirname(path)].append(os.path.basename(path))
    return groups


def tag_files(controller: ColorTagsController, files: List[str], color: str) -> int:
    """
    Tag ``files`` through one listing per containing directory.

    Returns:
        Number of files whose color changed
    """
    changed = 0
    root = controller.config.data.tagging.root
    for directory, names in _group_by_directory(files).items():
        listing = DirectoryListing.from_names(directory, names, root=root, show_dots=False)
        controller.attach(listing)
        try:
            positions = [listing.find_entry(name).line_start for name in names]
            changed += len(controller.tag_entries(listing, positions, color))
        finally:
            controller.detach(listing)
    return changed


def show_tags(service: TagService, color: Optional[str]) -> int:
    service.ensure_loaded()
    colors = [color] if color else service.store.colors()
    total = 0
    for name in colors:
        ids = sorted(service.ids_with_color(name))
        if not ids:
            continue
        print(f"{name} ({len(ids)})")
        for file_id in ids:
            print(f"  {file_id}")
        total += len(ids)
    if not total:
        print("No tagged files")
    return total


async def run_command(args, locator: ServiceLocator) -> int:
    service = locator.get_system(TagService)
    controller = ColorTagsController(service, locator.config)

    if args.command == "tag":
        count = tag_files(controller, args.files, args.color)
        print(f"✓ Tagged {count} file(s) {args.color}")
    elif args.command == "untag":
        count = tag_files(controller, args.files, "")
        print(f"✓ Untagged {count} file(s)")
    elif args.command == "show":
        show_tags(service, args.color)
    elif args.command == "colors":
        service.ensure_loaded()
        for name in service.store.colors():
            print(f"{name}\t{len(service.ids_with_color(name))}")
    return 0


async def main(args) -> int:
    """Console entry point (every command except ``browse``)."""
    builder = ApplicationBuilder("ColorTags", args.config).add_system(TagService)
    locator = await builder.build()

    try:
        return await run_command(args, locator)
    except Exception as e:
        logger.error(f"Command failed: {e}")
        print(f"\n❌ Error: {e}")
        return 1
    finally:
        # Flushes tags
        await locator.stop_all()


def run(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    if args.command == "browse":
        builder = ApplicationBuilder("ColorTags", args.config).with_logging().add_system(TagService)
        return run_app(args.directory, builder)

    return asyncio.run(main(args))


if __name__ == "__main__":
    sys.exit(run())
