"""
ICS-309 PDF Export

Draws the Communications Log form with reportlab on US Letter pages:

1. Incident Name / 2. Operational Period
3. Radio Operator (Name, Call Sign) and frequency
   Checked-In Stations roster (word-wrapped)
4. Log (Communications) table, paginated, row height follows the
   wrapped message
5. Prepared by (last page only), "Page X of Y" on every page
"""

import io
import logging
from datetime import date, datetime
from typing import List, Optional

from reportlab.lib.colors import Color, black
from reportlab.lib.pagesizes import letter
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from .csv_codec import filename_slug
from .models import NetSession, SessionBundle, utc_now

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = 'application/pdf'

PAGE_WIDTH, PAGE_HEIGHT = letter
MARGIN = 50
FOOTER_SPACE = 80
FOOTER_Y = 60

FONT = 'Helvetica'
FONT_BOLD = 'Helvetica-Bold'

COL_WIDTHS = [30, 50, 70, 70, 200]
COL_X = [MARGIN + sum(COL_WIDTHS[:i]) for i in range(len(COL_WIDTHS))]

MIN_ROW_HEIGHT = 15
LINE_HEIGHT = 10
LOG_HEADER_HEIGHT = 35
ROSTER_LINE_HEIGHT = 12
ROSTER_LINE_CHARS = 80

HEADER_FILL = Color(0.9, 0.9, 0.9)
ROW_BORDER = Color(0.7, 0.7, 0.7)


def wrap_text(text: str, max_width: float, font: str = FONT, size: float = 8) -> List[str]:
    """
    Word-wrap text to a width in points.

    Words wider than the column are split by character. Empty text
    yields a single "-" so the row is never blank.
    """
    words = (text or '').split()
    if not words:
        return ['-']

    lines = []
    current = ''
    for word in words:
        candidate = f"{current} {word}" if current else word
        if stringWidth(candidate, font, size) <= max_width:
            current = candidate
            continue
        if current:
            lines.append(current)
        pieces = _split_word(word, max_width, font, size)
        lines.extend(pieces[:-1])
        current = pieces[-1]
    if current:
        lines.append(current)
    return lines or ['-']


def _split_word(word: str, max_width: float, font: str, size: float) -> List[str]:
    pieces = []
    current = ''
    for ch in word:
        if stringWidth(current + ch, font, size) > max_width and current:
            pieces.append(current)
            current = ch
        else:
            current += ch
    pieces.append(current)
    return pieces


def wrap_roster(text: str, width: int = ROSTER_LINE_CHARS) -> List[str]:
    """Break the roster string near `width` characters, preferring ', ' boundaries"""
    lines = []
    remaining = text
    while remaining:
        chunk = remaining[:width]
        if len(chunk) < width:
            cut = len(chunk)
        else:
            sep = chunk.rfind(', ')
            cut = sep + 2 if sep > 0 else width
        lines.append(remaining[:cut])
        remaining = remaining[cut:]
    return lines


def _local(value: datetime) -> datetime:
    return value.astimezone()


def _format_datetime(value: datetime) -> str:
    return _local(value).strftime('%Y-%m-%d %H:%M:%S')


def operational_period_end(bundle: SessionBundle) -> Optional[datetime]:
    """End of the operational period, or None while the net is still running"""
    session = bundle.session
    if not session.is_closed:
        return None
    if session.end_time:
        return session.end_time
    if bundle.log_entries:
        return bundle.log_entries[-1].time
    return session.date_time


class _NumberedCanvas(canvas.Canvas):
    """Canvas that defers footers until the page count is known"""

    def __init__(self, *args, prepared_by: str = '', **kwargs):
        super().__init__(*args, **kwargs)
        self._saved_page_states = []
        self._prepared_by = prepared_by

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        total = len(self._saved_page_states)
        for index, state in enumerate(self._saved_page_states, 1):
            self.__dict__.update(state)
            self._draw_footer(index, total)
            super().showPage()
        super().save()

    def _draw_footer(self, page_number: int, total: int) -> None:
        self.setFont(FONT, 9)
        self.drawString(PAGE_WIDTH - MARGIN - 60, FOOTER_Y, f"Page {page_number} of {total}")
        if page_number != total:
            return
        self.drawString(MARGIN, FOOTER_Y, '5. Prepared by:')
        if self._prepared_by:
            self.setFont(FONT_BOLD, 9)
            self.drawString(MARGIN + 85, FOOTER_Y - 12, self._prepared_by)
        self.setStrokeColor(black)
        self.setLineWidth(0.5)
        self.line(MARGIN + 80, FOOTER_Y - 2, MARGIN + 200, FOOTER_Y - 2)


class ICS309Renderer:
    """Lays out one session onto a canvas, tracking the vertical cursor"""

    def __init__(self, bundle: SessionBundle, pdf: canvas.Canvas):
        self.bundle = bundle
        self.pdf = pdf
        self.y = PAGE_HEIGHT - MARGIN
        self.page_count = 1

    def new_page(self) -> None:
        self.pdf.showPage()
        self.page_count += 1
        self.y = PAGE_HEIGHT - MARGIN

    def text(self, x: float, y: float, value: str, size: float = 9, bold: bool = False) -> None:
        self.pdf.setFont(FONT_BOLD if bold else FONT, size)
        self.pdf.drawString(x, y, value)

    def box(self, x: float, y: float, width: float, height: float, line_width: float = 1,
            stroke: Color = black, fill: Optional[Color] = None) -> None:
        self.pdf.setLineWidth(line_width)
        self.pdf.setStrokeColor(stroke)
        if fill is not None:
            self.pdf.setFillColor(fill)
        self.pdf.rect(x, y, width, height, stroke=1, fill=1 if fill is not None else 0)
        self.pdf.setFillColor(black)

    def render(self) -> None:
        self.draw_header()
        self.draw_roster()
        self.draw_log()

    def draw_header(self) -> None:
        session = self.bundle.session
        content_width = PAGE_WIDTH - 2 * MARGIN
        mid_x = PAGE_WIDTH / 2

        self.text(MARGIN, self.y, 'ICS 309 - COMMUNICATIONS LOG', size=16, bold=True)
        self.y -= 30

        self.box(MARGIN, self.y - 60, content_width, 60)
        self.text(MARGIN + 5, self.y - 15, '1. Incident Name:')
        self.text(MARGIN + 5, self.y - 28, session.name, size=11, bold=True)

        end = operational_period_end(self.bundle)
        self.text(mid_x, self.y - 15, '2. Operational Period:')
        self.text(mid_x, self.y - 28, f"Start: {_format_datetime(session.date_time)}", size=10)
        self.text(mid_x, self.y - 42, f"End: {_format_datetime(end) if end else 'Present'}", size=10)
        self.y -= 75

        self.box(MARGIN, self.y - 45, content_width, 45)
        self.text(MARGIN + 5, self.y - 15, '3. Radio Operator (Name, Call Sign):')
        self.text(MARGIN + 5, self.y - 30,
                  f"{session.net_control_name} - {session.net_control_op}", size=11, bold=True)
        self.text(mid_x, self.y - 30, f"Frequency: {session.frequency}", size=10)
        self.y -= 60

    def _ensure_space(self, required: float) -> bool:
        if self.y - required < FOOTER_SPACE:
            self.new_page()
            return True
        return False

    def _roster_header(self, continuation: bool) -> None:
        count = len(self.bundle.participants)
        label = f"Checked-In Stations ({count})"
        label += ' (cont.):' if continuation else ':'
        self._ensure_space(15)
        self.text(MARGIN, self.y, label, size=10, bold=True)
        self.y -= 15

    def draw_roster(self) -> None:
        self._roster_header(False)
        items = []
        for p in self.bundle.participants:
            tactical = f"{p.tactical_call} / " if p.tactical_call else ''
            items.append(f"{tactical}{p.callsign} ({p.name})")

        for line in wrap_roster(', '.join(items)):
            if self.y - ROSTER_LINE_HEIGHT < FOOTER_SPACE:
                self.new_page()
                self._roster_header(True)
            self.text(MARGIN, self.y, line, size=8)
            self.y -= ROSTER_LINE_HEIGHT
        self.y -= 10

    def _log_header(self, continuation: bool) -> None:
        title = '4. Log (Communications)'
        if continuation:
            title += ' (cont.)'
        self.text(MARGIN, self.y, title, size=10, bold=True)
        top = self.y - 20

        self.box(MARGIN, top - 15, PAGE_WIDTH - 2 * MARGIN, 15, line_width=0.5, fill=HEADER_FILL)
        for x, label in zip(COL_X, ['#', 'Time', 'From', 'To', 'Subject/Remarks']):
            self.text(x + 5, top - 12, label, bold=True)
        self.y = top - 15

    def draw_log(self) -> None:
        if self.y - LOG_HEADER_HEIGHT - MIN_ROW_HEIGHT < FOOTER_SPACE:
            self.new_page()
        self._log_header(False)

        for entry in self.bundle.log_entries:
            message_lines = wrap_text(entry.message, COL_WIDTHS[4] - 10)
            row_height = max(MIN_ROW_HEIGHT, len(message_lines) * LINE_HEIGHT + 6)

            if self.y - row_height < FOOTER_SPACE:
                self.new_page()
                self._log_header(True)

            self.box(MARGIN, self.y - row_height, PAGE_WIDTH - 2 * MARGIN, row_height,
                     line_width=0.5, stroke=ROW_BORDER)
            text_y = self.y - 12
            self.text(COL_X[0] + 5, text_y, str(entry.entry_number), size=8)
            self.text(COL_X[1] + 5, text_y, _local(entry.time).strftime('%H:%M'), size=8)
            self.text(COL_X[2] + 5, text_y, entry.from_callsign, size=8)
            self.text(COL_X[3] + 5, text_y, entry.to_callsign, size=8)
            for i, line in enumerate(message_lines):
                self.text(COL_X[4] + 5, text_y - i * LINE_HEIGHT, line, size=8)

            self.y -= row_height


def generate_ics309_pdf(bundle: SessionBundle) -> bytes:
    """
    Render a session as an ICS-309 PDF.

    Args:
        bundle: Session to render

    Returns:
        PDF document bytes
    """
    buffer = io.BytesIO()
    pdf = _NumberedCanvas(buffer, pagesize=letter, prepared_by=bundle.session.prepared_by)
    pdf.setTitle(f"ICS 309 - {bundle.session.name}")
    renderer = ICS309Renderer(bundle, pdf)
    renderer.render()
    pdf.showPage()
    pdf.save()
    logger.info(f"Rendered ICS-309 for '{bundle.session.name}' ({renderer.page_count} pages)")
    return buffer.getvalue()


def pdf_filename(session: NetSession, today: Optional[date] = None) -> str:
    """Download name, e.g. ICS309_Morning_Net_2025-01-05.pdf"""
    today = today or utc_now().date()
    return f"ICS309_{filename_slug(session.name)}_{today.isoformat()}.pdf"
