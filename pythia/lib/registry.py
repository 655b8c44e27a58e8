"""
Active work items registry (status.md) updater.

The registry holds one markdown table per work item type plus a metrics
section. Each update replaces (or inserts) one item's row, recounts the
metrics from every table and rewrites the whole file in canonical order.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path

from pythia.lib.types import PRIORITY_VALUES, STATUS_VALUES, WorkItemType, parse_type
from pythia.lib.workitem import WorkItem

logger = logging.getLogger(__name__)

SECTION_ORDER = [
    "Active Tasks",
    "Active Proposals",
    "Active Explorations",
    "New Ideas",
    "Work Item Metrics",
    "Dependencies Graph",
    "Next Actions",
]

TABLE_SECTIONS = [t.section for t in WorkItemType]
METRICS_SECTION = "Work Item Metrics"

TABLE_HEADER_MARKER = "| ID | Title |"
TABLE_HEADER = "| ID | Title | Status | Priority | Owner | Last Updated |"
SEPARATOR_RE = re.compile(r'^\|\s*:?-{3,}')
UNASSIGNED = "Unassigned"


class RegistryUpdateError(Exception):
    """Registry could not be read, parsed or written."""


@dataclass
class WorkItemMetrics:
    total_items: int = 0
    status_distribution: dict[str, int] = field(
        default_factory=lambda: {s: 0 for s in STATUS_VALUES})
    priority_distribution: dict[str, int] = field(
        default_factory=lambda: {p: 0 for p in PRIORITY_VALUES})
    team_distribution: dict[str, int] = field(default_factory=dict)
    blocked_items: int = 0
    average_completion_days: float | None = None


def parse_sections(content: str) -> tuple[str, dict[str, str]]:
    """Split registry text on `## ` headings.

    Returns (preamble, sections). The preamble is whatever precedes the first
    heading; each section value includes its own heading line. Section text
    is stripped of surrounding blank lines.
    """
    preamble_lines: list[str] = []
    sections: dict[str, str] = {}
    current = None
    current_lines: list[str] = []

    for line in content.splitlines():
        if line.startswith("## "):
            if current is not None:
                sections[current] = "\n".join(current_lines).strip()
            current = line[3:].strip()
            current_lines = [line]
        elif current is None:
            preamble_lines.append(line)
        else:
            current_lines.append(line)

    if current is not None:
        sections[current] = "\n".join(current_lines).strip()

    return "\n".join(preamble_lines).strip(), sections


def split_row(line: str) -> list[str]:
    """Cells of a markdown table row, without the outer pipes."""
    return [cell.strip() for cell in line.strip().strip("|").split("|")]


def format_table_row(item: WorkItem) -> str:
    return (
        f"| {item.id} | {item.title} | {item.status} | {item.priority or '-'} "
        f"| {item.owner or '-'} | {item.last_updated} |"
    )


def _find_table(lines: list[str]) -> int:
    for i, line in enumerate(lines):
        if TABLE_HEADER_MARKER in line:
            return i
    return -1


def table_rows(section_text: str) -> list[list[str]]:
    """Data rows (as cell lists) of the first table in a section."""
    lines = section_text.splitlines()
    start = _find_table(lines)
    if start == -1:
        return []

    rows = []
    for line in lines[start + 1:]:
        if not line.startswith("|"):
            break
        if SEPARATOR_RE.match(line):
            continue
        rows.append(split_row(line))
    return rows


def update_item_in_section(sections: dict[str, str], item: WorkItem) -> None:
    """Replace or insert item's row in the table for its type."""
    item_type = parse_type(item.type)
    if item_type is None:
        raise ValueError(f"Invalid section for item type: {item.type}")

    section = item_type.section
    if section not in sections:
        raise ValueError(f"Section not found in registry: {section}")

    lines = sections[section].splitlines()
    table_start = _find_table(lines)
    if table_start == -1:
        raise ValueError(f"Table not found in section: {section}")

    row = format_table_row(item)
    insert_at = table_start + 1
    if insert_at < len(lines) and SEPARATOR_RE.match(lines[insert_at]):
        insert_at += 1

    existing = None
    for i in range(insert_at, len(lines)):
        if not lines[i].startswith("|"):
            break
        if split_row(lines[i])[0] == item.id:
            existing = i
            break

    if existing is not None:
        lines[existing] = row
        logger.debug(f"[REGISTRY] Replaced row for {item.id} in {section}")
    else:
        # Newest first: directly under the header
        lines.insert(insert_at, row)
        logger.debug(f"[REGISTRY] Added row for {item.id} to {section}")

    sections[section] = "\n".join(lines)


def _completion_days(item: WorkItem) -> int | None:
    if not item.completed_at:
        return None
    try:
        created = date.fromisoformat(item.created_at)
        completed = date.fromisoformat(item.completed_at)
    except ValueError:
        return None
    return (completed - created).days


def calculate_metrics(
    sections: dict[str, str],
    work_items: list[WorkItem] | None = None,
) -> WorkItemMetrics:
    """Count statuses, priorities and owners over every registry table row.

    Average completion time needs created/completed dates, which the tables
    don't carry; it is computed from work_items when given.
    """
    metrics = WorkItemMetrics()

    for section in TABLE_SECTIONS:
        for cells in table_rows(sections.get(section, "")):
            if len(cells) < 6:
                continue
            _, _, status, priority, owner, _ = cells[:6]
            metrics.total_items += 1
            if status in metrics.status_distribution:
                metrics.status_distribution[status] += 1
            if status == "Blocked":
                metrics.blocked_items += 1
            if priority in metrics.priority_distribution:
                metrics.priority_distribution[priority] += 1
            team = owner if owner and owner != "-" else UNASSIGNED
            metrics.team_distribution[team] = metrics.team_distribution.get(team, 0) + 1

    if work_items is not None:
        durations = [d for d in (_completion_days(i) for i in work_items) if d is not None]
        if durations:
            metrics.average_completion_days = round(sum(durations) / len(durations), 1)

    metrics.team_distribution = dict(sorted(metrics.team_distribution.items()))
    return metrics


def format_metrics(metrics: WorkItemMetrics) -> str:
    lines = [f"## {METRICS_SECTION}", "", "### Status Distribution"]
    lines.extend(f"- {status}: {count}" for status, count in metrics.status_distribution.items())
    lines.extend(["", "### Priority Distribution"])
    lines.extend(f"- {priority}: {count}" for priority, count in metrics.priority_distribution.items())
    lines.extend(["", "### Team Distribution"])
    lines.extend(f"- {team}: {count}" for team, count in metrics.team_distribution.items())

    if metrics.average_completion_days is None:
        average = "n/a"
    else:
        average = f"{metrics.average_completion_days:g} days"

    lines.extend([
        "",
        "### Other Metrics",
        f"- Total Items: {metrics.total_items}",
        f"- Blocked Items: {metrics.blocked_items}",
        f"- Average Completion Time: {average}",
    ])
    return "\n".join(lines)


def format_registry(preamble: str, sections: dict[str, str]) -> str:
    """Reassemble in canonical order. Sections outside SECTION_ORDER are dropped."""
    dropped = [name for name in sections if name not in SECTION_ORDER]
    if dropped:
        logger.warning(f"[REGISTRY] Dropping non-canonical sections: {', '.join(dropped)}")

    parts = [preamble] if preamble else []
    parts.extend(sections[name] for name in SECTION_ORDER if sections.get(name))
    return "\n\n".join(parts) + "\n"


def update_registry(
    registry_path: Path,
    item: WorkItem,
    work_items: list[WorkItem] | None = None,
) -> None:
    """Reflect item's current state in the registry file.

    Args:
        registry_path: Path to status.md (must already exist)
        item: The updated work item
        work_items: All items on disk, used for completion-time metrics

    Raises:
        RegistryUpdateError: on any read, parse or write failure
    """
    try:
        if not registry_path.exists():
            raise FileNotFoundError(f"Registry file not found: {registry_path}")

        preamble, sections = parse_sections(registry_path.read_text())
        update_item_in_section(sections, item)

        metrics = calculate_metrics(sections, work_items)
        sections[METRICS_SECTION] = format_metrics(metrics)

        registry_path.write_text(format_registry(preamble, sections))
    except (OSError, ValueError) as e:
        raise RegistryUpdateError(f"Failed to update Active Work Items Registry: {e}") from e

    logger.info(f"[REGISTRY] {item.id} -> {item.status} ({item.type})")
