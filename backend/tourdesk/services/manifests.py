"""Printable trip manifests (boarding, driver and hotel lists) drawn with reportlab.

Layout is in PDF points on an A4 page, measured from the top edge; ``_Doc``
flips to reportlab's bottom-left origin.
"""
from __future__ import annotations

import io
import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import Callable, Sequence

from reportlab.lib.colors import HexColor
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from tourdesk.core.config import settings

logger = logging.getLogger(__name__)

W, H = A4
MARGIN = 50
HEADER_HEIGHT = 30
ROW_HEIGHT = 25
PAGE_BREAK_MARGIN = 100

BRAND = HexColor('#6CC24A')
BLACK = HexColor('#000000')
WHITE = HexColor('#FFFFFF')
GRID = HexColor('#CCCCCC')
MUTED = HexColor('#666666')
EMPTY = HexColor('#999999')

HIGHLIGHT_COLORS = [
    '#90EE90', '#FFFF66', '#FF66FF', '#66CCFF', '#FFB266',
    '#CC99FF', '#FFCC66', '#66FFB2', '#FF99CC', '#99CCFF',
]

EMPTY_MESSAGE = "Nenhum passageiro registrado ainda."
SPOUSE = "cônjuge"
CHILD_RELATIONSHIPS = {"filho", "filha", "filho(a)"}

KINDS = ("embarque", "motorista", "hotel")

_REPLACEMENTS = {
    "‘": "'", "’": "'",
    "“": '"', "”": '"',
    "–": "-", "—": "-",
}


def sanitize_text(text: str | None) -> str:
    """Drop characters the standard PDF fonts cannot draw."""
    text = text or ""
    for src, dst in _REPLACEMENTS.items():
        text = text.replace(src, dst)
    # emoji and other symbols outside Latin-1
    text = "".join(ch for ch in text if ord(ch) < 256)
    return text.strip()


def _sort_key(name: str | None) -> str:
    return sanitize_text(name).upper()


def _fmt_date(value) -> str:
    if not value:
        return "N/A"
    if isinstance(value, str):
        value = date.fromisoformat(value[:10])
    return value.strftime("%d/%m/%Y")


@dataclass
class ManifestTrip:
    """What the header prints about the trip."""
    name: str
    country: str | None = None
    bus_name: str | None = None
    bus_type: str | None = None
    guides: str | None = None
    drivers: str | None = None
    bus_company: str | None = None


class _Doc:
    def __init__(self, title: str, today: date):
        self.buffer = io.BytesIO()
        self.c = canvas.Canvas(self.buffer, pagesize=A4)
        self.c.setTitle(title)
        self.c.setAuthor(settings.agency_name)
        self.today = today
        self.page = 1

    def text(self, x, top, value, font="Helvetica", size=12, color=BLACK):
        self.c.setFillColor(color)
        self.c.setFont(font, size)
        self.c.drawString(x, H - top - size, value)

    def centered(self, top, value, font="Helvetica", size=12, color=BLACK):
        self.c.setFillColor(color)
        self.c.setFont(font, size)
        self.c.drawCentredString(W / 2, H - top - size, value)

    def fit(self, value: str, width: float, font: str, size: float) -> str:
        if self.c.stringWidth(value, font, size) <= width:
            return value
        while value and self.c.stringWidth(value + "...", font, size) > width:
            value = value[:-1]
        return value + "..."

    def rect(self, x, top, w, h, fill=None, stroke=None):
        if fill is not None:
            self.c.setFillColor(fill)
        if stroke is not None:
            self.c.setStrokeColor(stroke)
            self.c.setLineWidth(0.5)
        self.c.rect(x, H - top - h, w, h, fill=1 if fill is not None else 0, stroke=1 if stroke is not None else 0)

    def vline(self, x, top, h, color=GRID):
        self.c.setStrokeColor(color)
        self.c.setLineWidth(0.5)
        self.c.line(x, H - top, x, H - top - h)

    def footer(self):
        y = H - 60
        self.c.setStrokeColor(BRAND)
        self.c.setLineWidth(0.5)
        self.c.line(MARGIN, 60, W - MARGIN, 60)
        self.text(MARGIN, y + 10, sanitize_text(settings.agency_footer), size=8, color=MUTED)
        self.text(450, y + 10, f"Página {self.page}", size=8, color=MUTED)
        self.text(430, y + 20, f"Gerado em {self.today.strftime('%d/%m/%Y')}", size=8, color=MUTED)

    def new_page(self):
        self.footer()
        self.c.showPage()
        self.page += 1

    def finish(self) -> bytes:
        self.footer()
        self.c.save()
        return self.buffer.getvalue()


def _header(doc: _Doc, title: str, trip: ManifestTrip, top: float = 100) -> float:
    doc.text(MARGIN, 20, sanitize_text(settings.agency_name), font="Helvetica-Bold", size=18, color=BRAND)
    doc.text(MARGIN, 40, sanitize_text(settings.agency_tagline), size=10, color=BRAND)
    doc.c.setStrokeColor(BRAND)
    doc.c.setLineWidth(1)
    doc.c.line(MARGIN, H - 65, W - MARGIN, H - 65)
    doc.centered(75, title, font="Helvetica-Bold", size=20)

    lines = [f"Destino: {sanitize_text(trip.name)} ({sanitize_text(trip.country) or 'N/A'})"]
    if trip.bus_name:
        lines.append(f"Ônibus: {sanitize_text(trip.bus_name)} - {sanitize_text(trip.bus_type) or 'N/A'}")
    lines.append(f"Data: {doc.today.strftime('%d/%m/%Y')}")
    if trip.guides:
        lines.append(f"Guias: {sanitize_text(trip.guides)}")
    if trip.drivers:
        lines.append(f"O Motorista: {sanitize_text(trip.drivers)}")
    if trip.bus_company:
        lines.append(f"Nome da Empresa de Ônibus: {sanitize_text(trip.bus_company)}")
    for line in lines:
        doc.text(MARGIN, top, line)
        top += 15
    return top


def _draw_table_header(doc: _Doc, headers: Sequence[str], widths: Sequence[float], top: float) -> float:
    doc.rect(MARGIN, top, sum(widths), HEADER_HEIGHT, fill=BRAND)
    x = MARGIN
    for label, w in zip(headers, widths):
        doc.text(x + 5, top + 10, doc.fit(label, w - 10, "Helvetica-Bold", 10), font="Helvetica-Bold", size=10, color=WHITE)
        x += w
    return top + HEADER_HEIGHT


def _draw_table(
    doc: _Doc,
    headers: Sequence[str],
    rows: Sequence[Sequence[str]],
    top: float,
    widths: Sequence[float],
    row_colors: Sequence[str | None] | None = None,
) -> float:
    """Rows below a header band; the band repeats at the top of every new page."""
    total_w = sum(widths)
    top = _draw_table_header(doc, headers, widths, top)

    for i, row in enumerate(rows):
        if top > H - PAGE_BREAK_MARGIN:
            doc.new_page()
            top = _draw_table_header(doc, headers, widths, MARGIN)
        color = row_colors[i] if row_colors else None
        if color:
            doc.rect(MARGIN, top, total_w, ROW_HEIGHT, fill=HexColor(color))
        doc.rect(MARGIN, top, total_w, ROW_HEIGHT, stroke=GRID)
        x = MARGIN
        for cell, w in zip(row, widths):
            doc.vline(x, top, ROW_HEIGHT)
            doc.text(x + 5, top + 8, doc.fit(cell or "N/A", w - 10, "Helvetica", 9), size=9)
            x += w
        top += ROW_HEIGHT
    return top


def _empty(doc: _Doc, top: float) -> None:
    doc.centered(top + 40, EMPTY_MESSAGE, size=12, color=EMPTY)


def _doc_ids(p: dict) -> str:
    parts = []
    if p.get("rg"):
        parts.append(f"RG: {p['rg']}")
    if p.get("cpf"):
        parts.append(f"CPF: {p['cpf']}")
    return ", ".join(parts) or "N/A"


def _by_name(passengers: Sequence[dict]) -> list[dict]:
    return sorted(passengers, key=lambda p: _sort_key(p.get("name")))


def build_boarding_list(trip: ManifestTrip, passengers: Sequence[dict], today: date | None = None) -> bytes:
    doc = _Doc("LISTA DE EMBARQUE", today or date.today())
    top = _header(doc, "LISTA DE EMBARQUE", trip)
    if passengers:
        rows = [
            [
                str(i),
                sanitize_text(p.get("name")) or "Nome não informado",
                _doc_ids(p),
                p.get("seat_number") or "S/N",
                sanitize_text(p.get("departure_location")) or "N/A",
            ]
            for i, p in enumerate(_by_name(passengers), start=1)
        ]
        _draw_table(doc, ["N°", "NOME", "RG/CPF", "POLT.", "EMBARQUE"], rows, top + 20, [40, 150, 120, 60, 120])
    else:
        _empty(doc, top)
    return doc.finish()


def build_driver_list(trip: ManifestTrip, passengers: Sequence[dict], today: date | None = None) -> bytes:
    doc = _Doc("LISTA DO MOTORISTA", today or date.today())
    top = _header(doc, "LISTA DO MOTORISTA", trip)
    doc.text(MARGIN, top, f"Total de passageiros: {len(passengers)}", size=10, color=MUTED)
    if passengers:
        rows = [
            [str(i), sanitize_text(p.get("name")) or "Nome não informado", p.get("cpf") or "N/A", p.get("rg") or "N/A"]
            for i, p in enumerate(_by_name(passengers), start=1)
        ]
        _draw_table(doc, ["#", "Nome Completo", "CPF", "RG"], rows, top + 20, [40, 200, 130, 120])
    else:
        _empty(doc, top)
    return doc.finish()


# hotel rooms

def group_families(passengers: Sequence[dict]) -> list[list[dict]]:
    """Families keyed by client id, ordered by the titular's name, titular first."""
    groups: dict = {}
    for p in passengers:
        groups.setdefault(p.get("client_id"), []).append(p)
    families = []
    for members in groups.values():
        members = sorted(members, key=lambda m: 1 if m.get("is_child") else 0)
        families.append(members)
    families.sort(key=lambda fam: _sort_key(fam[0].get("name")))
    return families


def room_type(family: Sequence[dict]) -> str:
    size = len(family)
    has_spouse = any(m.get("is_child") and m.get("relationship") == SPOUSE for m in family)
    kids = sum(1 for m in family if m.get("is_child") and m.get("relationship") in CHILD_RELATIONSHIPS)
    if size <= 1:
        return "SINGLE"
    if size == 2:
        return "CASAL" if has_spouse else "DUPLO SOLTEIRO"
    if size == 3:
        if has_spouse and kids:
            return "CASAL + CHD"
        return "TRIPLO CASAL" if has_spouse else "TRIPLO SOLTEIRO"
    if size == 4:
        if has_spouse and kids:
            return "CASAL + 2CHD"
        return "QUADRUPLO CASAL" if has_spouse else "QUADRUPLO SOLTEIRO"
    if has_spouse and kids:
        return f"CASAL + {kids}CHD"
    return f"{size}x PESSOAS"


def hotel_rows(passengers: Sequence[dict]) -> tuple[list[list[str]], list[str | None]]:
    rows: list[list[str]] = []
    colors: list[str | None] = []
    for idx, family in enumerate(group_families(passengers)):
        color = HIGHLIGHT_COLORS[idx % len(HIGHLIGHT_COLORS)] if len(family) > 1 else None
        label = room_type(family)
        for pos, p in enumerate(family):
            rows.append([
                str(len(rows) + 1),
                sanitize_text(p.get("name")) or "Nome não informado",
                p.get("cpf") or "N/A",
                p.get("rg") or "N/A",
                _fmt_date(p.get("birthdate")),
                label if pos == 0 else "",
            ])
            colors.append(color)
    return rows, colors


def build_hotel_list(trip: ManifestTrip, passengers: Sequence[dict], today: date | None = None) -> bytes:
    doc = _Doc("LISTA PARA HOTEL", today or date.today())
    top = _header(doc, "LISTA PARA HOTEL", trip)
    doc.text(MARGIN, top, f"Total de hóspedes: {len(passengers)}", size=10, color=MUTED)
    if passengers:
        rows, colors = hotel_rows(passengers)
        _draw_table(doc, ["#", "Nome Completo", "CPF", "RG", "Nasc.", "APTOS"], rows, top + 20, [25, 140, 90, 80, 70, 85], colors)
    else:
        _empty(doc, top)
    return doc.finish()


BUILDERS: dict[str, tuple[str, Callable[..., bytes]]] = {
    "embarque": ("Embarque", build_boarding_list),
    "motorista": ("Motorista", build_driver_list),
    "hotel": ("Hotel", build_hotel_list),
}


def _slug(value: str) -> str:
    return re.sub(r"[^a-zA-Z0-9]", "_", value)


def manifest_filename(kind: str, destination_name: str, bus_name: str | None, today: date | None = None) -> str:
    prefix = BUILDERS[kind][0]
    today = today or date.today()
    return f"{prefix}_{_slug(destination_name)}_{_slug(bus_name or 'SemOnibus')}_{today.isoformat()}.pdf"


def build_manifest(kind: str, trip: ManifestTrip, passengers: Sequence[dict], today: date | None = None) -> bytes:
    if kind not in BUILDERS:
        raise ValueError(f"Unknown manifest kind: {kind}")
    pdf = BUILDERS[kind][1](trip, passengers, today)
    logger.info("Built %s manifest for %s (%d passengers, %d bytes)", kind, trip.name, len(passengers), len(pdf))
    return pdf
