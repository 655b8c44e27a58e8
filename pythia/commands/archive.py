"""
pythia archive - Archive completed work items.

Every item in Completed status is moved to Archived through the normal
status update flow, so the registry, graph and audit log stay in sync.
Items the validator rejects (for example, items still blocking others)
are reported and left alone.
"""

import logging
from datetime import date, datetime, timedelta, timezone

from pythia.lib.config import PythiaConfig
from pythia.lib.graph import GraphUpdateError
from pythia.lib.registry import RegistryUpdateError
from pythia.lib.status_log import StatusLogError
from pythia.lib.validate import ValidationError
from pythia.lib.workitem import WorkItem, list_work_items
from pythia.workflow.status_update import StatusUpdateError, update_work_item_status_core

logger = logging.getLogger(__name__)


def completed_before(item: WorkItem, cutoff: date) -> bool:
    """True if item has a Completed At date on or before cutoff."""
    if not item.completed_at:
        return False
    try:
        return date.fromisoformat(item.completed_at) <= cutoff
    except ValueError:
        logger.warning(f"Unparseable Completed At '{item.completed_at}' on {item.id}")
        return False


def find_archive_candidates(
    items: list[WorkItem],
    check_age: bool,
    age_days: int,
    today: date,
) -> list[WorkItem]:
    """Completed items, optionally only those completed at least age_days ago."""
    candidates = [i for i in items if i.status == "Completed"]
    if check_age:
        cutoff = today - timedelta(days=age_days)
        candidates = [i for i in candidates if completed_before(i, cutoff)]
    return candidates


def cmd_archive(args, config: PythiaConfig) -> int:
    """Archive completed work items."""
    now = datetime.now(timezone.utc)
    candidates = find_archive_candidates(
        list_work_items(config.docs_root),
        check_age=args.check_age,
        age_days=config.archive_age_days,
        today=now.date(),
    )

    if not candidates:
        print("No work items to archive.")
        return 0

    archived = []
    skipped = []
    for item in candidates:
        if args.dry_run:
            print(f"[DRY RUN] Would archive {item.id}: {item.title}")
            continue
        try:
            update_work_item_status_core(config, item.id, "Archived", now=now)
        except (StatusUpdateError, ValidationError, ValueError) as e:
            # Nothing was written for this item
            skipped.append((item.id, str(e)))
            continue
        except (RegistryUpdateError, GraphUpdateError, StatusLogError) as e:
            print(f"ERROR: {e}")
            print(f"  {item.id} was saved as Archived; stopping before the next item.")
            return 1
        archived.append(item.id)
        print(f"Archived {item.id}")

    if args.dry_run:
        print(f"{len(candidates)} work item(s) would be archived")
        return 0

    for item_id, error in skipped:
        print(f"  [SKIP] {item_id}: {error}")
    print(f"{len(archived)} archived, {len(skipped)} skipped")

    return 0
