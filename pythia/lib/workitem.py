"""
Work item file parser for Pythia.

Reads and writes the line-oriented markdown format used for tasks,
proposals, explorations and ideas:

    # Title

    Type: task
    Status: In Progress
    Last Updated: 2025-03-14
    Created: 2025-03-01
    Priority: High
    Owner: docs-team

    Dependencies:
    - task-2025-02-setup

Writing is a full reserialization. Unknown lines are dropped.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path

from pythia.lib import validate
from pythia.lib.types import WorkItemType, parse_type, type_for_directory

logger = logging.getLogger(__name__)

TITLE_RE = re.compile(r'^# (.+?)\s*$', re.MULTILINE)
LIST_ITEM_RE = re.compile(r'^- (.+?)\s*$')

# Field label -> WorkItem attribute, in serialization order
SCALAR_FIELDS = [
    ("Type", "type"),
    ("Status", "status"),
    ("Last Updated", "last_updated"),
    ("Created", "created_at"),
    ("Priority", "priority"),
    ("Complexity", "complexity"),
    ("Owner", "owner"),
    ("Status Reason", "status_reason"),
    ("Completed At", "completed_at"),
    ("Archived At", "archived_at"),
]

LIST_FIELDS = [
    ("Dependencies", "dependencies"),
    ("Blocked By", "blocked_by"),
    ("Blocks", "blocks"),
]

REQUIRED_FIELDS = ("Type", "Status")


def _field_re(label: str) -> re.Pattern:
    return re.compile(rf'^{re.escape(label)}:[ \t]*(.+?)[ \t]*$', re.MULTILINE)


FIELD_RES = {label: _field_re(label) for label, _ in SCALAR_FIELDS}


@dataclass
class WorkItem:
    """One trackable documentation unit, backed by a single markdown file."""
    id: str
    title: str
    type: str
    status: str
    last_updated: str
    created_at: str
    priority: str | None = None
    complexity: str | None = None
    owner: str | None = None
    status_reason: str | None = None
    completed_at: str | None = None
    archived_at: str | None = None
    dependencies: list[str] = field(default_factory=list)
    blocked_by: list[str] = field(default_factory=list)
    blocks: list[str] = field(default_factory=list)

    @property
    def item_type(self) -> WorkItemType | None:
        return parse_type(self.type)

    def to_dict(self) -> dict:
        """Plain dict form, with None fields omitted (used for schema checks)."""
        data = {"id": self.id, "title": self.title}
        for _, attr in SCALAR_FIELDS:
            value = getattr(self, attr)
            if value is not None:
                data[attr] = value
        for _, attr in LIST_FIELDS:
            data[attr] = list(getattr(self, attr))
        return data


class WorkItemFormatError(ValueError):
    """Item file is missing required fields."""


def extract_list(content: str, label: str) -> list[str]:
    """Collect `- entry` lines directly under a `Label:` line."""
    lines = content.splitlines()
    entries: list[str] = []
    header = f"{label}:"

    for i, line in enumerate(lines):
        if line.strip() != header:
            continue
        for following in lines[i + 1:]:
            match = LIST_ITEM_RE.match(following)
            if not match:
                break
            entries.append(match.group(1))
        break

    return entries


def parse_work_item(content: str, item_id: str, today: str | None = None) -> WorkItem:
    """Parse item file content into a WorkItem.

    Raises:
        WorkItemFormatError: if the title, type or status line is missing
    """
    today = today or date.today().isoformat()

    title_match = TITLE_RE.search(content)
    values = {}
    for label, attr in SCALAR_FIELDS:
        match = FIELD_RES[label].search(content)
        values[attr] = match.group(1) if match else None

    missing = [label for label, attr in SCALAR_FIELDS
               if label in REQUIRED_FIELDS and values[attr] is None]
    if not title_match:
        missing.insert(0, "Title")
    if missing:
        raise WorkItemFormatError(
            f"Invalid work item format: missing required fields ({', '.join(missing)})"
        )

    item_type = parse_type(values["type"])
    if item_type:
        values["type"] = item_type.value
    values["last_updated"] = values["last_updated"] or today
    values["created_at"] = values["created_at"] or today

    return WorkItem(
        id=item_id,
        title=title_match.group(1),
        **values,
        dependencies=extract_list(content, "Dependencies"),
        blocked_by=extract_list(content, "Blocked By"),
        blocks=extract_list(content, "Blocks"),
    )


def format_work_item(item: WorkItem) -> str:
    """Serialize a WorkItem back to its markdown file form."""
    lines = [f"# {item.title}", ""]

    for label, attr in SCALAR_FIELDS:
        value = getattr(item, attr)
        if value:
            lines.append(f"{label}: {value}")

    for label, attr in LIST_FIELDS:
        entries = getattr(item, attr)
        if entries:
            lines.append("")
            lines.append(f"{label}:")
            lines.extend(f"- {entry}" for entry in entries)

    return "\n".join(lines) + "\n"


def work_item_path(docs_root: Path, item_id: str) -> Path:
    """Resolve the file path for an item id.

    The id prefix picks the directory (task-... -> tasks/). Ids without a
    known prefix are looked up in every type directory; if none has the file
    the path under tasks/ is returned so callers get a stable not-found path.
    """
    prefix = item_id.split("-", 1)[0]
    item_type = parse_type(prefix)
    if item_type:
        return docs_root / item_type.directory / f"{item_id}.md"

    for candidate_type in WorkItemType:
        candidate = docs_root / candidate_type.directory / f"{item_id}.md"
        if candidate.exists():
            return candidate

    return docs_root / WorkItemType.TASK.directory / f"{item_id}.md"


def load_work_item(docs_root: Path, item_id: str) -> WorkItem | None:
    """Load an item from disk. Returns None if the file doesn't exist.

    As in list_work_items, the storage directory decides the type.
    """
    path = work_item_path(docs_root, item_id)
    if not path.exists():
        return None
    item = parse_work_item(path.read_text(), item_id)
    dir_type = type_for_directory(path.parent.name)
    if dir_type:
        item.type = dir_type.value
    return item


def save_work_item(docs_root: Path, item: WorkItem) -> Path:
    """Validate and write an item back to its file. Returns the path written."""
    path = work_item_path(docs_root, item.id)
    validate.validate_before_write(item.to_dict(), "work_item", path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(format_work_item(item))
    logger.debug(f"[ITEM] Wrote {item.id} to {path}")
    return path


def list_work_items(docs_root: Path) -> list[WorkItem]:
    """Load every parseable item under the four type directories.

    Directories are scanned in type order, files in name order. Files that
    are missing a title, type or status are skipped.
    """
    items = []
    for item_type in WorkItemType:
        type_dir = docs_root / item_type.directory
        if not type_dir.is_dir():
            continue
        for path in sorted(type_dir.glob("*.md")):
            try:
                item = parse_work_item(path.read_text(), path.stem)
            except WorkItemFormatError as e:
                logger.debug(f"[ITEM] Skipping {path}: {e}")
                continue
            # Directory decides the type, whatever the Type: line says
            dir_type = type_for_directory(type_dir.name)
            if dir_type:
                item.type = dir_type.value
            items.append(item)
    return items
