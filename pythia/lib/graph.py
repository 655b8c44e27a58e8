"""
Dependency graph generation.

Rebuilds a mermaid diagram from every work item file on disk and splices
it into the report file under `## Dependencies Graph`. Always a full
rescan; nothing is cached between calls.
"""

import logging
import re
from pathlib import Path

from pythia.lib.workitem import WorkItem, list_work_items

logger = logging.getLogger(__name__)

GRAPH_SECTION = "Dependencies Graph"
SECTION_SPLIT_RE = re.compile(r'^## ', re.MULTILINE)


class GraphUpdateError(Exception):
    """Report file could not be read or written."""


def _node_label(title: str) -> str:
    # Mermaid has no backslash escapes inside quoted labels
    return title.replace('"', "#quot;")


def generate_graph(items: list[WorkItem]) -> str:
    """Render items as a fenced mermaid `graph TD` block.

    Nodes come first (one per item), then one solid edge per dependency and
    one dashed edge per blocks entry, all in item order.
    """
    lines = ["```mermaid", "graph TD"]

    for item in items:
        lines.append(f'  {item.id}["{_node_label(item.title)}"]')

    for item in items:
        for dep in item.dependencies:
            lines.append(f"  {dep} --> {item.id}")
        for blocked in item.blocks:
            lines.append(f"  {item.id} -.-> {blocked}")

    lines.append("```")
    return "\n".join(lines) + "\n"


def find_cycles(items: list[WorkItem]) -> list[list[str]]:
    """Find dependency cycles (dep --> item edges only).

    Returns each cycle once, as a list of ids starting and ending with the
    same id. Ids referenced but not on disk are treated as leaves.
    """
    edges: dict[str, list[str]] = {item.id: [] for item in items}
    for item in items:
        for dep in item.dependencies:
            edges.setdefault(dep, []).append(item.id)

    cycles: list[list[str]] = []
    seen_cycles: set[frozenset] = set()
    visited: set[str] = set()

    def walk(node: str, stack: list[str], on_stack: set[str]) -> None:
        visited.add(node)
        stack.append(node)
        on_stack.add(node)
        for nxt in edges.get(node, []):
            if nxt in on_stack:
                cycle = stack[stack.index(nxt):] + [nxt]
                key = frozenset(cycle)
                if key not in seen_cycles:
                    seen_cycles.add(key)
                    cycles.append(cycle)
            elif nxt not in visited:
                walk(nxt, stack, on_stack)
        stack.pop()
        on_stack.discard(node)

    for node in list(edges):
        if node not in visited:
            walk(node, [], set())

    return cycles


def replace_graph_section(content: str, graph: str) -> str:
    """Replace the body of `## Dependencies Graph`, or append the section."""
    parts = SECTION_SPLIT_RE.split(content)
    new_section = f"{GRAPH_SECTION}\n\n{graph}"

    for i, part in enumerate(parts):
        if i > 0 and part.split("\n", 1)[0].strip() == GRAPH_SECTION:
            # Keep a blank line before whatever section follows
            parts[i] = new_section + ("\n" if i < len(parts) - 1 else "")
            return "## ".join(parts)

    if content and not content.endswith("\n\n"):
        content = content.rstrip("\n") + "\n\n"
    return content + f"## {new_section}"


def update_graph(report_path: Path, docs_root: Path) -> str:
    """Regenerate the dependency graph and write it into report_path.

    Returns the generated graph block.

    Raises:
        GraphUpdateError: on any read or write failure
    """
    try:
        if not report_path.exists():
            raise FileNotFoundError(f"Report file not found: {report_path}")
        content = report_path.read_text()

        items = list_work_items(docs_root)
        for cycle in find_cycles(items):
            logger.warning(f"[GRAPH] Dependency cycle: {' --> '.join(cycle)}")

        graph = generate_graph(items)
        report_path.write_text(replace_graph_section(content, graph))
    except OSError as e:
        raise GraphUpdateError(f"Failed to update dependencies graph: {e}") from e

    logger.info(f"[GRAPH] Rendered {len(items)} work items into {report_path}")
    return graph
