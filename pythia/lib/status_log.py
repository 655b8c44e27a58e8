"""
Status change audit trail.

Every accepted status change is appended to a per-item log file
(<log_dir>/<id>.log) and recorded under today's section of a shared
CHANGELOG.md. Existing entries are never rewritten or removed.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path

logger = logging.getLogger(__name__)


class StatusLogError(Exception):
    """Audit trail could not be written."""


def format_log_entry(
    item_id: str,
    old_status: str,
    new_status: str,
    timestamp: str,
    reason: str | None = None,
) -> str:
    suffix = f" (Reason: {reason})" if reason else ""
    return f"[{timestamp}] {item_id}: {old_status} -> {new_status}{suffix}\n"


def format_changelog_entry(
    item_id: str,
    old_status: str,
    new_status: str,
    reason: str | None = None,
) -> str:
    suffix = f" ({reason})" if reason else ""
    return f"- [{item_id}] Status changed from {old_status} to {new_status}{suffix}"


def add_changelog_entry(content: str, day: str, entry: str) -> str:
    """Insert entry directly under the `## [day]` header.

    A missing header is created as a new section above all existing content.
    """
    header = f"## [{day}]"
    lines = content.split("\n")

    for i, line in enumerate(lines):
        if line.startswith(header):
            # Newest entry goes first, below any blank lines after the header
            insert_at = i + 1
            while insert_at < len(lines) and not lines[insert_at].strip():
                insert_at += 1
            lines.insert(insert_at, entry)
            return "\n".join(lines)

    return f"{header}\n\n{entry}\n\n{content}"


def log_status_change(
    log_dir: Path,
    changelog_path: Path,
    item_id: str,
    old_status: str,
    new_status: str,
    reason: str | None = None,
    now: datetime | None = None,
) -> None:
    """Record a status change in the item log and the changelog.

    Raises:
        StatusLogError: on any filesystem failure
    """
    now = now or datetime.now(timezone.utc)
    timestamp = now.isoformat()

    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        with open(log_dir / f"{item_id}.log", "a") as f:
            f.write(format_log_entry(item_id, old_status, new_status, timestamp, reason))

        content = changelog_path.read_text() if changelog_path.exists() else ""
        entry = format_changelog_entry(item_id, old_status, new_status, reason)
        changelog_path.parent.mkdir(parents=True, exist_ok=True)
        changelog_path.write_text(add_changelog_entry(content, now.date().isoformat(), entry))
    except OSError as e:
        raise StatusLogError(f"Failed to log status change: {e}") from e

    logger.debug(f"[LOG] {item_id}: {old_status} -> {new_status} recorded")


def read_status_log(log_dir: Path, item_id: str) -> list[str]:
    """Return recorded log lines for an item, oldest first."""
    log_file = log_dir / f"{item_id}.log"
    if not log_file.exists():
        return []
    return [line for line in log_file.read_text().splitlines() if line.strip()]
