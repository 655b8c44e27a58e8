"""
pythia graph - Regenerate the dependency graph in the report file.
"""

from pythia.lib.config import PythiaConfig
from pythia.lib.graph import GraphUpdateError, update_graph


def cmd_graph(args, config: PythiaConfig) -> int:
    try:
        graph = update_graph(config.report_path, config.docs_root)
    except GraphUpdateError as e:
        print(f"ERROR: {e}")
        return 1

    node_count = sum(1 for line in graph.splitlines() if line.rstrip().endswith('"]'))
    print(f"Dependencies graph updated in {config.report_path} ({node_count} work items)")
    return 0
