"""Work item state machine using the transitions library.

The fixed status transition table lives here. The validator reads it to
decide admissibility; WorkItemFSM drives an accepted change through a
transitions.Machine so the record only ever moves along a declared edge.

Usage:
    from pythia.workflow.fsm import WorkItemFSM

    fsm = WorkItemFSM(item)
    fsm.move_to("In Progress")  # item.status is now "In Progress"
"""

import logging
from dataclasses import dataclass
from typing import Callable

from transitions import Machine, MachineError

from pythia.lib.types import STATUS_VALUES
from pythia.lib.workitem import WorkItem

logger = logging.getLogger(__name__)


STATES = list(STATUS_VALUES)


@dataclass(frozen=True)
class StatusTransition:
    """One legal edge of the status graph."""
    trigger: str
    source: str
    dest: str
    requires_reason: bool = False
    requires_approval: bool = False


STATUS_TRANSITIONS = [
    StatusTransition("start", "Not Started", "In Progress"),
    StatusTransition("submit_for_review", "In Progress", "Under Review"),
    StatusTransition("block", "In Progress", "Blocked", requires_reason=True),
    StatusTransition("unblock", "Blocked", "In Progress"),
    StatusTransition("request_changes", "Under Review", "In Progress"),
    StatusTransition("complete", "Under Review", "Completed", requires_approval=True),
    StatusTransition("archive", "Completed", "Archived"),
]

# transitions.Machine only understands trigger/source/dest
TRANSITIONS = [
    {"trigger": t.trigger, "source": t.source, "dest": t.dest}
    for t in STATUS_TRANSITIONS
]

TRANSITION_FOR: dict[tuple[str, str], StatusTransition] = {
    (t.source, t.dest): t for t in STATUS_TRANSITIONS
}


class InvalidTransition(Exception):
    """Raised when the FSM is asked to follow an edge that doesn't exist."""

    def __init__(self, from_status: str, to_status: str, item_id: str = ""):
        self.from_status = from_status
        self.to_status = to_status
        self.item_id = item_id
        super().__init__(
            f"Invalid transition from {from_status} to {to_status}"
            + (f" (work item: {item_id})" if item_id else "")
        )


class WorkItemFSM:
    """State machine bound to one WorkItem record.

    The machine's state mirrors item.status; every completed transition
    writes the new status back onto the record. Nothing is written to disk.
    """

    def __init__(self, item: WorkItem, on_transition: Callable[[str, str, str], None] | None = None):
        """
        Args:
            item: The work item to drive
            on_transition: Optional callback(from_status, to_status, trigger) run after transitions
        """
        self.item = item
        self.on_transition = on_transition

        if item.status not in STATES:
            raise InvalidTransition(item.status, "(any)", item.id)

        self.machine = Machine(
            model=self,
            states=STATES,
            transitions=TRANSITIONS,
            initial=item.status,
            auto_transitions=False,
            send_event=True,
            after_state_change="on_state_change",
        )

    def on_state_change(self, event) -> None:
        """Callback after any transition: sync the record."""
        from_status = event.transition.source
        to_status = event.transition.dest
        trigger = event.event.name

        self.item.status = to_status
        logger.info(f"[FSM] {self.item.id}: {from_status} -> {to_status} ({trigger})")

        if self.on_transition:
            self.on_transition(from_status, to_status, trigger)

    def move_to(self, to_status: str) -> None:
        """Follow the edge from the current status to to_status.

        Raises:
            InvalidTransition: if no edge connects the two statuses
        """
        edge = TRANSITION_FOR.get((self.state, to_status))
        if edge is None:
            raise InvalidTransition(self.state, to_status, self.item.id)
        try:
            getattr(self, edge.trigger)()
        except MachineError as e:
            raise InvalidTransition(self.state, to_status, self.item.id) from e

    def next_statuses(self) -> list[str]:
        """Statuses reachable from the current one, in table order."""
        return [t.dest for t in STATUS_TRANSITIONS if t.source == self.state]
