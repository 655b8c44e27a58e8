"""Work item status update flow.

update_work_item_status_core() is the single entry point that changes a
work item's status:

    load item -> validate -> write item file -> registry -> graph -> audit log

Stages run strictly in order. A rejected transition writes nothing. A stage
that fails after the item file was written is not rolled back: the item
keeps its new status and later files (registry, report, logs) may be stale
until the next successful update. There is no locking; concurrent updates
to the same files are last-write-wins.
"""

import logging
from datetime import datetime, timezone

from pythia.lib.config import PythiaConfig
from pythia.lib.graph import update_graph
from pythia.lib.registry import update_registry
from pythia.lib.status_log import log_status_change
from pythia.lib.types import parse_status
from pythia.lib.workitem import WorkItem, list_work_items, load_work_item, save_work_item
from pythia.workflow.fsm import WorkItemFSM
from pythia.workflow.validator import validate_status_change, validate_transition_rules

logger = logging.getLogger(__name__)


class StatusUpdateError(Exception):
    """Status update rejected before any file was written."""


class WorkItemNotFound(StatusUpdateError):
    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"Work item not found: {item_id}")


class InvalidStatusTransition(StatusUpdateError):
    """The validator refused the change. Message is the validator's, verbatim."""


def update_work_item_status_core(
    config: PythiaConfig,
    item_id: str,
    new_status: str,
    reason: str | None = None,
    approved: bool = False,
    now: datetime | None = None,
) -> WorkItem:
    """Move a work item to new_status and propagate the change.

    Args:
        config: Project configuration (paths and policy flags)
        item_id: Work item id, e.g. "task-2025-03-test"
        new_status: Target status string
        reason: Reason for the change; stored as Status Reason
        approved: Caller holds approval (needed for Under Review -> Completed)
        now: Clock override for the timestamps written

    Returns:
        The updated WorkItem

    Raises:
        StatusUpdateError: invalid status, missing item or rejected transition
        RegistryUpdateError, GraphUpdateError, StatusLogError: a later stage failed
    """
    now = now or datetime.now(timezone.utc)
    today = now.date().isoformat()

    if parse_status(new_status) is None:
        raise StatusUpdateError(f"Invalid status: {new_status}")

    item = load_work_item(config.docs_root, item_id)
    if item is None:
        raise WorkItemNotFound(item_id)

    result = validate_status_change(
        item,
        new_status,
        reason=reason,
        approved=approved,
        require_approval=config.require_approval,
    )
    if result.is_valid and config.strict_rules:
        result = validate_transition_rules(item, new_status)
    if not result.is_valid:
        logger.info(f"[STATUS] {item_id}: {item.status} -> {new_status} rejected: {result.error}")
        raise InvalidStatusTransition(result.error or "Invalid transition")

    old_status = item.status
    WorkItemFSM(item).move_to(new_status)
    item.last_updated = today
    # Reason belongs to this transition only
    item.status_reason = reason or None
    if new_status == "Completed":
        item.completed_at = today
    elif new_status == "Archived":
        item.archived_at = today

    save_work_item(config.docs_root, item)
    logger.info(f"[STATUS] {item_id}: {old_status} -> {new_status}" + (f" ({reason})" if reason else ""))

    update_registry(config.registry_path, item, list_work_items(config.docs_root))
    update_graph(config.report_path, config.docs_root)
    log_status_change(
        config.log_dir,
        config.changelog_path,
        item_id,
        old_status,
        new_status,
        reason=reason,
        now=now,
    )

    return item

