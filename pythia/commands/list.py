"""
pythia list - List work items on disk.
"""

from pythia.lib.config import PythiaConfig
from pythia.lib.types import parse_status, parse_type
from pythia.lib.workitem import list_work_items


def cmd_list(args, config: PythiaConfig) -> int:
    """List work items, optionally filtered by type and status."""
    type_filter = getattr(args, "type", None)
    status_filter = getattr(args, "status", None)

    if type_filter and parse_type(type_filter) is None:
        print(f"ERROR: Unknown type '{type_filter}'")
        return 2
    if status_filter and parse_status(status_filter) is None:
        print(f"ERROR: Unknown status '{status_filter}'")
        return 2

    items = list_work_items(config.docs_root)
    if type_filter:
        items = [i for i in items if i.type == parse_type(type_filter).value]
    if status_filter:
        items = [i for i in items if i.status == status_filter]

    if not items:
        print("No work items found.")
        return 0

    print(f"{'ID':<32} {'TYPE':<12} {'STATUS':<14} {'OWNER':<14} TITLE")
    print("-" * 90)
    for item in items:
        title = item.title[:30] + "..." if len(item.title) > 30 else item.title
        print(f"{item.id:<32} {item.type:<12} {item.status:<14} {item.owner or '-':<14} {title}")
    print("-" * 90)
    print(f"{len(items)} work item(s)")

    return 0
