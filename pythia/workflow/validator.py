"""Status transition validation.

validate_status_change() decides whether a work item may move to a new
status. It is pure: it reads the item and the transition table and never
mutates anything. Checks run in a fixed order and the first failure wins.
"""

from dataclasses import dataclass

from pythia.lib.types import parse_status
from pythia.lib.workitem import WorkItem
from pythia.workflow.fsm import TRANSITION_FOR


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    error: str | None = None


VALID = ValidationResult(is_valid=True)


def _invalid(message: str) -> ValidationResult:
    return ValidationResult(is_valid=False, error=message)


def validate_status_change(
    item: WorkItem,
    new_status: str,
    reason: str | None = None,
    approved: bool = False,
    require_approval: bool = True,
) -> ValidationResult:
    """Check whether item may transition to new_status.

    Args:
        item: Work item in its current state
        new_status: Requested status string
        reason: Reason for the change (required for some edges)
        approved: Whether the caller holds approval for the change
        require_approval: Enforce approval on edges that declare it

    Returns:
        ValidationResult; is_valid is False with an error message on rejection

    Raises:
        ValueError: if item is None
    """
    if item is None:
        raise ValueError("validate_status_change requires a work item")

    if parse_status(new_status) is None:
        return _invalid(f"Invalid status: {new_status}")

    edge = TRANSITION_FOR.get((item.status, new_status))
    if edge is None:
        return _invalid(f"Invalid transition from {item.status} to {new_status}")

    if edge.requires_reason and not (reason and reason.strip()):
        return _invalid(f"Status transition to {new_status} requires a reason")

    if edge.requires_approval and require_approval and not approved:
        return _invalid(f"Status transition to {new_status} requires approval")

    if new_status == "Blocked" and not item.blocked_by:
        return _invalid("Blocked status requires at least one blocking item")

    if new_status == "Completed" and item.blocked_by:
        return _invalid("Cannot complete item with blocking dependencies")

    if new_status == "Archived" and item.blocks:
        return _invalid("Cannot archive item that blocks other items")

    return VALID


def validate_transition_rules(item: WorkItem, new_status: str) -> ValidationResult:
    """Business rules on top of the transition table (STRICT_RULES mode).

    Review needs an owner; completion needs an owner and a priority.
    """
    if new_status == "Under Review" and not item.owner:
        return _invalid("Owner must be assigned before review")

    if new_status == "Completed" and not (item.owner and item.priority):
        return _invalid("Owner and priority must be set before completion")

    return VALID
