"""Who gets to pick a seat: the client first, then eligible companions."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable

CLIENT_PASSENGER_ID = "client"
MIN_SEAT_AGE = 5


def add_years(d: date, years: int) -> date:
    try:
        return d.replace(year=d.year + years)
    except ValueError:
        # Feb 29 birthdays count from Mar 1 in non-leap years
        return date(d.year + years, 3, 1)


def calculate_age(birthdate: date, today: date | None = None) -> int:
    """Completed years as of ``today``."""
    today = today or date.today()
    age = today.year - birthdate.year
    if (today.month, today.day) < (birthdate.month, birthdate.day):
        age -= 1
    return age


def can_choose_seat(birthdate: date | None, kids_policy: str | None, today: date | None = None) -> bool:
    """Age gate for companions.

    ``"no"``: strictly older than 5 (the 5th birthday must be behind us).
    ``"yes"``: 5 or older (5th birthday today counts).
    anything else: always eligible.
    """
    if kids_policy not in ("yes", "no"):
        return True
    if birthdate is None:
        return True
    today = today or date.today()
    fifth_birthday = add_years(birthdate, MIN_SEAT_AGE)
    if kids_policy == "no":
        return today > fifth_birthday
    return today >= fifth_birthday


@dataclass(frozen=True)
class Passenger:
    id: str
    name: str
    kind: str  # client | child
    price: float = 0.0
    child_id: int | None = None


def build_passengers(client, children: Iterable, kids_policy: str | None, today: date | None = None) -> list[Passenger]:
    """Ordered passenger list for a selection session.

    Ineligible companions are left out entirely.
    """
    people = [
        Passenger(
            id=CLIENT_PASSENGER_ID,
            name=f"{client.first_name} {client.last_name}".strip(),
            kind="client",
            price=float(client.travel_price or 0),
        )
    ]
    for child in children:
        if not can_choose_seat(child.birthdate, kids_policy, today):
            continue
        people.append(Passenger(
            id=str(child.id),
            name=child.name,
            kind="child",
            price=float(child.price or 0),
            child_id=child.id,
        ))
    return people
