"""
pythia log - Show the status change history of a work item.
"""

from pythia.lib.config import PythiaConfig
from pythia.lib.status_log import read_status_log


def cmd_log(args, config: PythiaConfig) -> int:
    entries = read_status_log(config.log_dir, args.id)
    if not entries:
        print(f"No status changes recorded for {args.id}.")
        return 0

    if args.limit:
        entries = entries[-args.limit:]

    for line in entries:
        print(line)

    return 0
