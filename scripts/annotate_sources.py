"""Annotate JSX/TSX sources with inline edit markers.

Usage:
  python scripts/annotate_sources.py path/to/app/src
  python scripts/annotate_sources.py path/to/app/src --project-root path/to/app --write

Every in-scope file (.jsx/.tsx outside node_modules) is parsed and its
editable elements get a ``data-edit-id``; elements that must stay
read-only get ``data-edit-disabled``. Without ``--write`` nothing on disk
changes and only a summary is printed.
"""
import argparse
import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from dotenv import load_dotenv
load_dotenv()

from src.config import get_settings
from src.markup import EDITABLE_TAGS, annotate_tree


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument('root', type=Path, nargs='?', default=None,
                        help='directory to scan (default: INLINE_EDIT_PROJECT_ROOT)')
    parser.add_argument('--project-root', type=Path, default=None,
                        help='base for identifier paths (default: root)')
    parser.add_argument('--write', action='store_true', help='rewrite files in place')
    parser.add_argument('--maps', type=Path, default=None,
                        help='write position maps as JSON to this file')
    parser.add_argument('--tags', default=','.join(sorted(EDITABLE_TAGS)),
                        help='comma separated editable tag allowlist')
    parser.add_argument('-v', '--verbose', action='store_true')
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(levelname)s %(message)s',
    )

    root = args.root or get_settings().project_root
    if not root.is_dir():
        print(f"Not a directory: {root}", file=sys.stderr)
        return 2

    tags = [tag.strip() for tag in args.tags.split(',') if tag.strip()]
    results = annotate_tree(root, args.project_root, write=args.write, editable_tags=tags)

    editable = sum(len(result.editable_ids) for result in results.values())
    disabled = sum(result.disabled_count for result in results.values())
    for path, result in results.items():
        print(f"{path}: {len(result.editable_ids)} editable, {result.disabled_count} disabled")

    if args.maps:
        maps = {path: result.position_map.to_dict() for path, result in results.items()}
        args.maps.write_text(json.dumps(maps, indent=2), encoding='utf-8')

    action = 'Annotated' if args.write else 'Would annotate'
    print(f"{action} {len(results)} files ({editable} editable, {disabled} disabled)")
    return 0


if __name__ == '__main__':
    sys.exit(main())
