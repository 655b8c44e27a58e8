"""
pythia show - Show one work item with its legal next statuses and audit log.
"""

from pythia.lib.config import PythiaConfig
from pythia.lib.status_log import read_status_log
from pythia.lib.workitem import WorkItemFormatError, load_work_item
from pythia.workflow.fsm import TRANSITION_FOR, InvalidTransition, WorkItemFSM

LOG_PREVIEW = 5


def cmd_show(args, config: PythiaConfig) -> int:
    """Show work item details."""
    try:
        item = load_work_item(config.docs_root, args.id)
    except WorkItemFormatError as e:
        print(f"ERROR: {args.id}: {e}")
        return 1

    if item is None:
        print(f"ERROR: Work item '{args.id}' not found")
        return 1

    print(f"Work item: {item.id}")
    print("=" * 60)
    print(f"Title:        {item.title}")
    print(f"Type:         {item.type}")
    print(f"Status:       {item.status}")
    if item.status_reason:
        print(f"Reason:       {item.status_reason}")
    print(f"Priority:     {item.priority or '-'}")
    print(f"Complexity:   {item.complexity or '-'}")
    print(f"Owner:        {item.owner or '-'}")
    print(f"Created:      {item.created_at}")
    print(f"Last Updated: {item.last_updated}")
    print()

    for label, entries in (
        ("Dependencies", item.dependencies),
        ("Blocked By", item.blocked_by),
        ("Blocks", item.blocks),
    ):
        if entries:
            print(f"{label}: {', '.join(entries)}")

    try:
        next_statuses = WorkItemFSM(item).next_statuses()
    except InvalidTransition:
        next_statuses = []

    print()
    if next_statuses:
        print("Next statuses:")
        for status in next_statuses:
            edge = TRANSITION_FOR[(item.status, status)]
            notes = []
            if edge.requires_reason:
                notes.append("needs --reason")
            if edge.requires_approval and config.require_approval:
                notes.append("needs --approve")
            note = f"  ({', '.join(notes)})" if notes else ""
            print(f"  -> {status}{note}")
    else:
        print("Next statuses: none")

    entries = read_status_log(config.log_dir, item.id)
    if entries:
        print()
        print(f"Recent changes ({min(len(entries), LOG_PREVIEW)} of {len(entries)}):")
        for line in entries[-LOG_PREVIEW:]:
            print(f"  {line}")

    return 0
