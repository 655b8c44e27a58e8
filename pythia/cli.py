#!/usr/bin/env python3
"""Pythia CLI entrypoint."""

import sys
import argparse
import logging
from pathlib import Path

from pythia.lib.config import find_project_dir, load_config
from pythia.lib.types import STATUS_VALUES, WorkItemType
from pythia.commands import archive as cmd_archive_module
from pythia.commands import graph as cmd_graph_module
from pythia.commands import list as cmd_list_module
from pythia.commands import log as cmd_log_module
from pythia.commands import show as cmd_show_module
from pythia.commands import update as cmd_update_module


def get_config(args):
    """Load config for --project-dir, or the nearest ancestor with .pythia/."""
    if args.project_dir:
        project_dir = Path(args.project_dir)
        if not project_dir.is_dir():
            print(f"ERROR: Project directory not found: {project_dir}")
            sys.exit(2)
    else:
        project_dir = find_project_dir(Path.cwd())

    try:
        return load_config(project_dir)
    except ValueError as e:
        print(f"ERROR: Invalid configuration: {e}")
        sys.exit(2)


def cmd_update(args):
    return cmd_update_module.cmd_update(args, get_config(args))


def cmd_show(args):
    return cmd_show_module.cmd_show(args, get_config(args))


def cmd_list(args):
    return cmd_list_module.cmd_list(args, get_config(args))


def cmd_graph(args):
    return cmd_graph_module.cmd_graph(args, get_config(args))


def cmd_archive(args):
    return cmd_archive_module.cmd_archive(args, get_config(args))


def cmd_log(args):
    return cmd_log_module.cmd_log(args, get_config(args))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='pythia', description='Pythia work item status CLI')
    parser.add_argument('--project-dir', '-C', help='Project directory (default: nearest with .pythia/)')
    parser.add_argument('--verbose', '-v', action='store_true', help='Show debug logging')
    subparsers = parser.add_subparsers(dest='command', required=True)

    # pythia update
    p_update = subparsers.add_parser('update', help='Change a work item status')
    p_update.add_argument('id', help='Work item ID (e.g., task-2025-03-test)')
    p_update.add_argument('status', help=f"New status ({', '.join(STATUS_VALUES)})")
    p_update.add_argument('--reason', '-r', help='Reason for the change (required for Blocked)')
    p_update.add_argument('--approve', action='store_true', help='Approve the change (required for Completed)')
    p_update.set_defaults(func=cmd_update)

    # pythia show
    p_show = subparsers.add_parser('show', help='Show a work item')
    p_show.add_argument('id', help='Work item ID')
    p_show.set_defaults(func=cmd_show)

    # pythia list
    p_list = subparsers.add_parser('list', help='List work items')
    p_list.add_argument('--type', '-t', choices=[t.value for t in WorkItemType], help='Only this type')
    p_list.add_argument('--status', '-s', help='Only this status')
    p_list.set_defaults(func=cmd_list)

    # pythia graph
    p_graph = subparsers.add_parser('graph', help='Regenerate the dependencies graph')
    p_graph.set_defaults(func=cmd_graph)

    # pythia archive
    p_archive = subparsers.add_parser('archive', help='Archive completed work items')
    p_archive.add_argument('--dry-run', action='store_true', help='Show what would be archived')
    p_archive.add_argument('--check-age', action='store_true',
                           help='Only archive items completed at least ARCHIVE_AGE_DAYS ago')
    p_archive.set_defaults(func=cmd_archive)

    # pythia log
    p_log = subparsers.add_parser('log', help='Show status change history')
    p_log.add_argument('id', help='Work item ID')
    p_log.add_argument('--limit', '-n', type=int, help='Show only the last N entries')
    p_log.set_defaults(func=cmd_log)

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return args.func(args)


if __name__ == '__main__':
    sys.exit(main())
