"""
pythia update - Change a work item's status.
"""

from pythia.lib.config import PythiaConfig
from pythia.lib.graph import GraphUpdateError
from pythia.lib.registry import RegistryUpdateError
from pythia.lib.status_log import StatusLogError
from pythia.lib.validate import ValidationError
from pythia.workflow.status_update import StatusUpdateError, update_work_item_status_core


def cmd_update(args, config: PythiaConfig) -> int:
    """Validate and apply a status change, then refresh registry, graph and logs."""
    try:
        item = update_work_item_status_core(
            config,
            args.id,
            args.status,
            reason=args.reason,
            approved=args.approve,
        )
    except StatusUpdateError as e:
        print(f"ERROR: Failed to update status: {e}")
        return 1
    except (RegistryUpdateError, GraphUpdateError, StatusLogError) as e:
        # Item file already carries the new status at this point
        print(f"ERROR: {e}")
        print(f"  {args.id} was saved as '{args.status}' but later files may be stale.")
        print("  Fix the problem and run 'pythia graph' or re-run a status update to resync.")
        return 1
    except (ValidationError, ValueError) as e:
        print(f"ERROR: {e}")
        return 1

    print(f"Updated {item.id}: {item.status}")
    if args.reason:
        print(f"  Reason: {args.reason}")
    return 0
