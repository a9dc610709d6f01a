"""Seat selection state for one passenger group.

The session walks the passenger list (client first, then eligible companions)
one seat at a time and produces the single submission payload. It holds no
I/O of its own: the reserved-seat list is the snapshot taken when the page
was loaded, and submission goes through whatever ``send`` callable the caller
provides (see ``seat_client.SeatSelectionClient``).
"""
from __future__ import annotations

import logging
import time
from datetime import date
from enum import Enum
from types import SimpleNamespace
from typing import Callable, Iterable, Mapping

from tourdesk.services.bus_layouts import BusLayout, SelectMode, render_layout, resolve_layout
from tourdesk.services.passengers import CLIENT_PASSENGER_ID, Passenger, build_passengers

logger = logging.getLogger(__name__)

FRAME_SECONDS = 1 / 60
SUBMIT_FAILED_MESSAGE = "Could not confirm the seats, please try again"


class SelectionState(str, Enum):
    IN_PROGRESS = "selection_in_progress"
    ALL_SELECTED = "all_selected"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    ERROR = "error"


class SelectionError(Exception):
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class SeatUnavailableError(SelectionError):
    pass


class SeatTakenError(SelectionError):
    pass


class MissingSeatError(SelectionError):
    pass


class IncompleteSelectionError(SelectionError):
    pass


class ClickGuard:
    """Drops a second seat click arriving within the same frame.

    Some touch devices fire both touch and click for one tap.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic, window: float = FRAME_SECONDS):
        self._clock = clock
        self._window = window
        self._armed_at: float | None = None

    def busy(self) -> bool:
        return self._armed_at is not None and (self._clock() - self._armed_at) < self._window

    def arm(self) -> None:
        self._armed_at = self._clock()


class SelectionSession:
    def __init__(
        self,
        passengers: list[Passenger],
        reserved_seats: Iterable[str],
        layout: BusLayout,
        initial: Mapping[str, str] | None = None,
        auto_advance: bool = True,
        guard: ClickGuard | None = None,
    ):
        self.passengers = list(passengers)
        self.reserved_seats = [str(s) for s in reserved_seats]
        self.layout = layout
        self.auto_advance = auto_advance
        self.current_index = 0
        self.error_message: str | None = None
        self._selected: dict[str, str] = {k: str(v) for k, v in (initial or {}).items() if v}
        self._phase: SelectionState | None = None
        self._guard = guard or ClickGuard()

    @classmethod
    def from_context(cls, data: dict, today: date | None = None, **kwargs) -> "SelectionSession":
        """Build a session from the public seat-selection payload."""
        client = SimpleNamespace(**data["client"])
        children = [
            SimpleNamespace(**{**c, "birthdate": _parse_date(c.get("birthdate"))})
            for c in data.get("children", [])
        ]
        passengers = build_passengers(client, children, data.get("destination_kids_policy"), today)
        bus = data.get("bus") or {}
        layout = resolve_layout(bus.get("type"), bus.get("total_seats"))
        return cls(passengers, data.get("reserved_seats", []), layout, **kwargs)

    # state

    @property
    def state(self) -> SelectionState:
        if self._phase is not None:
            return self._phase
        return SelectionState.ALL_SELECTED if self.is_complete else SelectionState.IN_PROGRESS

    @property
    def current_passenger(self) -> Passenger | None:
        if 0 <= self.current_index < len(self.passengers):
            return self.passengers[self.current_index]
        return None

    @property
    def selected(self) -> dict[str, str]:
        return dict(self._selected)

    @property
    def is_complete(self) -> bool:
        return bool(self.passengers) and all(p.id in self._selected for p in self.passengers)

    def missing(self) -> list[Passenger]:
        return [p for p in self.passengers if p.id not in self._selected]

    def total_price(self) -> float:
        return sum(p.price for p in self.passengers)

    def blocked_seats(self) -> list[str]:
        """Reserved seats plus the ones other passengers of this session hold."""
        current = self.current_passenger
        blocked = list(self.reserved_seats)
        for pid, seat in self._selected.items():
            if current is None or pid != current.id:
                blocked.append(seat)
        return blocked

    # transitions

    def select_seat(self, seat: str) -> bool:
        """Assign ``seat`` to the current passenger.

        Returns False when the click is ignored (duplicate event, no current
        passenger, submission in flight or done).
        """
        if self._guard.busy():
            return False
        if self._phase in (SelectionState.SUBMITTING, SelectionState.SUCCESS):
            return False
        person = self.current_passenger
        if person is None:
            return False
        seat = str(seat)
        if not self.layout.has_seat(seat) or self.layout.is_guide(seat):
            raise SeatUnavailableError(f"Seat {seat} cannot be selected")
        if seat in self.reserved_seats:
            raise SeatUnavailableError(f"Seat {seat} is already reserved")
        if any(s == seat and pid != person.id for pid, s in self._selected.items()):
            raise SeatTakenError(f"Seat {seat} was already chosen for another passenger")

        self._guard.arm()
        self._selected[person.id] = seat
        if self._phase is SelectionState.ERROR:
            self._phase = None
            self.error_message = None
        if self.auto_advance and self.current_index < len(self.passengers) - 1:
            self.current_index += 1
        return True

    def go_to(self, index: int) -> None:
        if not 0 <= index < len(self.passengers):
            raise IndexError(index)
        self.current_index = index

    def next(self) -> None:
        person = self.current_passenger
        if person is not None and person.id not in self._selected:
            raise MissingSeatError(f"Select a seat for {person.name}")
        if self.current_index < len(self.passengers) - 1:
            self.current_index += 1

    def previous(self) -> None:
        if self.current_index > 0:
            self.current_index -= 1

    def render(self, mode: SelectMode = SelectMode.DEFAULT) -> dict:
        person = self.current_passenger
        current_seat = self._selected.get(person.id) if person else None
        return render_layout(self.layout, self.blocked_seats(), selected_seat=current_seat, mode=mode)

    # submission

    def build_submission(self) -> dict:
        if not self.is_complete:
            names = ", ".join(p.name for p in self.missing())
            raise IncompleteSelectionError(f"Select seats for every passenger before confirming: {names}")
        return {
            "client_seat": self._selected[CLIENT_PASSENGER_ID],
            "children_seats": [
                {"child_id": p.child_id, "seat_number": self._selected[p.id]}
                for p in self.passengers
                if p.kind == "child"
            ],
        }

    def submit(self, send: Callable[[dict], dict]) -> bool:
        """Send the bundled selection once; no retry on rejection.

        Returns False without sending while a submission is in flight or
        after one went through.
        """
        from tourdesk.services.seat_client import ApiError

        if self._phase in (SelectionState.SUBMITTING, SelectionState.SUCCESS):
            return False
        payload = self.build_submission()
        self._phase = SelectionState.SUBMITTING
        try:
            send(payload)
        except ApiError as e:
            logger.warning("Seat submission rejected (%s): %s", e.status_code, e.message)
            self._phase = SelectionState.ERROR
            self.error_message = e.message
            return False
        except Exception:
            logger.exception("Seat submission failed")
            self._phase = SelectionState.ERROR
            self.error_message = SUBMIT_FAILED_MESSAGE
            return False
        self._phase = SelectionState.SUCCESS
        self.error_message = None
        return True


def _parse_date(value) -> date | None:
    if value is None or isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])
