"""Seat maps of the agency's bus models.

Every physical bus model has its own hard-coded seat numbering: seats are laid
out in rows of two pairs around the aisle (the right pair is listed window
first, e.g. ``[1, 2 | 4, 3]``), interleaved with amenity markers (TV, fridge,
stairs...). A bus record only carries a free-text ``type`` and ``total_seats``;
``resolve_layout`` picks the matching model and falls back to a generic,
sequentially numbered grid for anything it does not recognise.

Nothing here touches the database. Rendering is a pure function of the layout,
the reserved seats and the current selection, so the same code serves the
public seat-selection page, the admin seat editor and the occupancy view.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Mapping, Sequence

DD64 = "dd64"
EXECUTIVO46 = "executivo46"
GRAFICO42 = "grafico42"
LD44 = "ld44"
GENERIC = "generic"


@dataclass(frozen=True)
class Amenity:
    label: str


@dataclass(frozen=True)
class SeatRow:
    left: tuple[int, ...]
    right: tuple[int, ...] = ()

    @property
    def seats(self) -> tuple[int, ...]:
        return self.left + self.right


@dataclass(frozen=True)
class Floor:
    name: str
    subtitle: str
    items: tuple[SeatRow | Amenity, ...]

    @property
    def seats(self) -> list[int]:
        return [n for item in self.items if isinstance(item, SeatRow) for n in item.seats]


@dataclass(frozen=True)
class BusLayout:
    key: str
    title: str
    floors: tuple[Floor, ...]
    guide_seat: str | None = None

    @property
    def seat_numbers(self) -> list[str]:
        return [str(n) for floor in self.floors for n in floor.seats]

    @property
    def capacity(self) -> int:
        return len(self.seat_numbers)

    def has_seat(self, seat: str) -> bool:
        return str(seat) in self.seat_numbers

    def is_guide(self, seat: str) -> bool:
        return self.guide_seat is not None and str(seat) == self.guide_seat

    @property
    def reservable_seats(self) -> list[str]:
        return [s for s in self.seat_numbers if not self.is_guide(s)]


def _pair_rows(first: int, last: int) -> tuple[SeatRow, ...]:
    """Rows of four from ``first`` up to ``last``: [n, n+1 | n+3, n+2]."""
    return tuple(SeatRow((n, n + 1), (n + 3, n + 2)) for n in range(first, last + 1, 4))


TV = Amenity("TV")
FRIDGE = Amenity("FRIGOBAR")
WC = Amenity("BANHEIRO")


def _dd64() -> BusLayout:
    upper = Floor(
        "PISO SUPERIOR",
        "Andar de Cima",
        (TV,)
        + _pair_rows(1, 12)
        + (Amenity("ESCADA"), SeatRow((13, 14)), FRIDGE, SeatRow((15, 16)), TV)
        + _pair_rows(17, 36)
        + (TV,)
        + _pair_rows(37, 48)
        + (FRIDGE,),
    )
    lower = Floor(
        "PISO INFERIOR",
        "Andar de Baixo",
        (
            Amenity("SALA VIP"),
            WC,
            TV,
            Amenity("PORTA"),
            Amenity("ESCADA"),
            Amenity("ENTRADA"),
            TV,
        )
        + _pair_rows(49, 64)
        + (FRIDGE, Amenity("BAGAGEIRO"), Amenity("CAMA MOTORISTA")),
    )
    return BusLayout(DD64, "DD 64 G7", (upper, lower), guide_seat="45")


def _executivo46() -> BusLayout:
    floor = Floor(
        "EXECUTIVO 46 POLTRONAS",
        "Ônibus Executivo",
        _pair_rows(1, 44) + (SeatRow((45, 46)), WC, Amenity("GELADEIRA")),
    )
    return BusLayout(EXECUTIVO46, "Executivo 46", (floor,), guide_seat="30")


def _grafico42() -> BusLayout:
    floor = Floor(
        "GRÁFICO 42 POLTRONAS",
        "Ônibus Gráfico",
        _pair_rows(1, 40) + (SeatRow((41, 42)), WC, Amenity("GELADEIRA")),
    )
    return BusLayout(GRAFICO42, "Gráfico 42", (floor,))


def _ld44() -> BusLayout:
    floor = Floor(
        "LEITO 44 POLTRONAS",
        "Ônibus Leito de Longo Curso",
        _pair_rows(1, 4) + (Amenity("ESCADA"),) + _pair_rows(5, 40) + (FRIDGE,) + _pair_rows(41, 44) + (WC,),
    )
    return BusLayout(LD44, "Leito 44", (floor,), guide_seat="43")


def generic_layout(total_seats: int) -> BusLayout:
    """Sequential numbering in rows of four, no physical fidelity."""
    count = max(int(total_seats or 0), 0)
    rows = []
    for n in range(1, count + 1, 4):
        chunk = [s for s in range(n, n + 4) if s <= count]
        left = tuple(chunk[:2])
        # right pair shows window seat first, as on the physical models
        right = tuple(reversed(chunk[2:]))
        rows.append(SeatRow(left, right))
    floor = Floor("Layout do Ônibus", f"{count} Poltronas", tuple(rows))
    return BusLayout(GENERIC, "Mapa de Poltronas", (floor,))


_FIXED_LAYOUTS = {
    DD64: _dd64(),
    EXECUTIVO46: _executivo46(),
    GRAFICO42: _grafico42(),
    LD44: _ld44(),
}


def layout_key(bus_type: str | None, total_seats: int | None) -> str:
    """Ordered first-match-wins selection of the layout for a bus."""
    t = (bus_type or "").lower()
    seats = total_seats if isinstance(total_seats, int) else -1
    if "dd" in t and "64" in t:
        return DD64
    if ("executivo" in t or "46" in t) and seats == 46:
        return EXECUTIVO46
    if ("grafico" in t or "gráfico" in t) and seats == 42:
        return GRAFICO42
    if ("ld" in t and "44" in t) or seats == 44:
        return LD44
    return GENERIC


def resolve_layout(bus_type: str | None, total_seats: int | None) -> BusLayout:
    key = layout_key(bus_type, total_seats)
    if key == GENERIC:
        return generic_layout(total_seats if isinstance(total_seats, int) else 0)
    return _FIXED_LAYOUTS[key]


def layout_for_bus(bus) -> BusLayout:
    return resolve_layout(bus.type, bus.total_seats)


class SelectMode(str, Enum):
    """Which seats react to clicks.

    DEFAULT is the booking mode (free seats only); RESERVED_ONLY and ALL are
    the read-only/admin views over an occupied bus.
    """
    DEFAULT = "default"
    NONE = "none"
    RESERVED_ONLY = "reserved-only"
    ALL = "all"

    @classmethod
    def parse(cls, value: "str | bool | SelectMode | None") -> "SelectMode":
        if isinstance(value, SelectMode):
            return value
        if value is True or value is None:
            return cls.DEFAULT
        if value is False:
            return cls.NONE
        value = str(value).strip().lower()
        if value in ("true", "", "default"):
            return cls.DEFAULT
        if value in ("false", "none"):
            return cls.NONE
        return cls(value)


def can_click(layout: BusLayout, seat: str, reserved: bool, mode: SelectMode = SelectMode.DEFAULT) -> bool:
    if layout.is_guide(seat):
        return False
    if mode is SelectMode.RESERVED_ONLY:
        return reserved
    if mode is SelectMode.ALL:
        return True
    if mode is SelectMode.DEFAULT:
        return not reserved
    return False


@dataclass(frozen=True)
class SeatView:
    number: str
    label: str
    status: str  # guide | highlighted | reserved | selected | available
    clickable: bool
    passenger_name: str | None = None

    def as_dict(self) -> dict:
        data = {"number": self.number, "label": self.label, "status": self.status, "clickable": self.clickable}
        if self.passenger_name:
            data["passenger_name"] = self.passenger_name
        return data


def seat_view(
    layout: BusLayout,
    seat: str,
    reserved_seats: Iterable[str] = (),
    selected_seat: str | None = None,
    highlighted_seat: str | None = None,
    mode: SelectMode = SelectMode.DEFAULT,
    seat_info: Mapping[str, str] | None = None,
) -> SeatView:
    seat = str(seat)
    reserved = seat in set(str(s) for s in reserved_seats)
    guide = layout.is_guide(seat)
    if guide:
        status = "guide"
    elif highlighted_seat is not None and seat == str(highlighted_seat):
        status = "highlighted"
    elif reserved:
        status = "reserved"
    elif selected_seat is not None and seat == str(selected_seat):
        status = "selected"
    else:
        status = "available"
    return SeatView(
        number=seat,
        label="GUIA" if guide else seat,
        status=status,
        clickable=can_click(layout, seat, reserved, mode),
        passenger_name=(seat_info or {}).get(seat),
    )


def render_layout(
    layout: BusLayout,
    reserved_seats: Sequence[str] = (),
    selected_seat: str | None = None,
    highlighted_seat: str | None = None,
    mode: "SelectMode | str | bool" = SelectMode.DEFAULT,
    seat_info: Mapping[str, str] | None = None,
) -> dict:
    """JSON-ready seat map: floors made of seat rows and amenity markers."""
    mode = SelectMode.parse(mode)
    reserved = [str(s) for s in reserved_seats]

    def _seat(n: int) -> dict:
        return seat_view(layout, str(n), reserved, selected_seat, highlighted_seat, mode, seat_info).as_dict()

    floors = []
    for floor in layout.floors:
        items = []
        for item in floor.items:
            if isinstance(item, Amenity):
                items.append({"kind": "amenity", "label": item.label})
            else:
                items.append({
                    "kind": "row",
                    "left": [_seat(n) for n in item.left],
                    "right": [_seat(n) for n in item.right],
                })
        floors.append({"name": floor.name, "subtitle": floor.subtitle, "items": items})
    return {
        "layout": layout.key,
        "title": layout.title,
        "capacity": layout.capacity,
        "guide_seat": layout.guide_seat,
        "mode": mode.value,
        "floors": floors,
    }
