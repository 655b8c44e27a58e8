"""
Shared enums for work items.

Kept in one module so the codec, validator and registry agree on the
closed sets of statuses, types and priorities.
"""

from enum import Enum


class WorkItemStatus(Enum):
    """All valid work item statuses.

    Values are the exact strings written to item files and registry rows.
    """

    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    UNDER_REVIEW = "Under Review"
    BLOCKED = "Blocked"
    COMPLETED = "Completed"
    ARCHIVED = "Archived"


class WorkItemType(Enum):
    """Work item kinds. Each maps to a storage directory and a registry section."""

    TASK = "task"
    PROPOSAL = "proposal"
    EXPLORATION = "exploration"
    IDEA = "idea"

    @property
    def directory(self) -> str:
        return TYPE_DIRECTORIES[self]

    @property
    def section(self) -> str:
        return TYPE_SECTIONS[self]


class Priority(Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


TYPE_DIRECTORIES = {
    WorkItemType.TASK: "tasks",
    WorkItemType.PROPOSAL: "proposals",
    WorkItemType.EXPLORATION: "explorations",
    WorkItemType.IDEA: "ideas",
}

TYPE_SECTIONS = {
    WorkItemType.TASK: "Active Tasks",
    WorkItemType.PROPOSAL: "Active Proposals",
    WorkItemType.EXPLORATION: "Active Explorations",
    WorkItemType.IDEA: "New Ideas",
}

STATUS_VALUES = [s.value for s in WorkItemStatus]
PRIORITY_VALUES = [p.value for p in Priority]


def parse_status(value: str | None) -> WorkItemStatus | None:
    """Parse a status string into WorkItemStatus.

    Returns None if the status is unknown.
    """
    if value is None:
        return None
    for status in WorkItemStatus:
        if status.value == value:
            return status
    return None


def parse_type(value: str | None) -> WorkItemType | None:
    """Parse a type string ("task", "proposal", ...). Returns None if unknown."""
    if value is None:
        return None
    for item_type in WorkItemType:
        if item_type.value == value.strip().lower():
            return item_type
    return None


def type_for_directory(directory: str) -> WorkItemType | None:
    """Singularize a storage directory name ("tasks" -> task)."""
    name = directory.rstrip("/").split("/")[-1]
    if name.endswith("s"):
        name = name[:-1]
    return parse_type(name)
