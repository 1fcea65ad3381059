"""Officer attendance report rendered with reportlab."""

from __future__ import annotations

from datetime import datetime
from io import BytesIO
from typing import Any, Optional, Sequence
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas
from reportlab.platypus import LongTable, Paragraph, SimpleDocTemplate, Spacer, TableStyle

LEFT_MARGIN = 14 * mm
RIGHT_MARGIN = 14 * mm
TOP_MARGIN = 16 * mm
BOTTOM_MARGIN = 16 * mm
PAGE_WIDTH, PAGE_HEIGHT = A4
CONTENT_WIDTH = PAGE_WIDTH - LEFT_MARGIN - RIGHT_MARGIN

NAVY = colors.HexColor("#0A1F44")
MUTED = colors.HexColor("#64748B")
GRID = colors.HexColor("#E2E8F0")
STRIPE_EVEN = colors.HexColor("#F8FAFC")
STRIPE_ODD = colors.HexColor("#F1F5F9")

_STYLES = getSampleStyleSheet()
TITLE_STYLE = ParagraphStyle("report-title", parent=_STYLES["Title"], fontSize=18, leading=22, textColor=NAVY, alignment=0)
SUBTITLE_STYLE = ParagraphStyle("report-subtitle", parent=_STYLES["Heading3"], fontSize=13, leading=16, textColor=NAVY)
META_STYLE = ParagraphStyle("report-meta", parent=_STYLES["BodyText"], fontSize=9.5, leading=12, textColor=MUTED)
HEADER_CELL_STYLE = ParagraphStyle(
    "table-header", parent=_STYLES["BodyText"], fontName="Helvetica-Bold", fontSize=9, leading=11, textColor=colors.white
)
CELL_STYLE = ParagraphStyle("table-cell", parent=_STYLES["BodyText"], fontSize=8.6, leading=10)

HEADERS = ("Date", "Time In", "Time Out", "Hours", "Status", "Location")
COL_WIDTHS = (0.17, 0.14, 0.14, 0.10, 0.13, 0.32)


def _cell(value: Any, style: ParagraphStyle) -> Paragraph:
    text = "-" if value is None or str(value).strip() == "" else str(value)
    return Paragraph(escape(text), style)


class NumberedCanvas(canvas.Canvas):
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._saved_page_states: list[dict[str, Any]] = []

    def showPage(self) -> None:
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self) -> None:
        total_pages = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self._draw_footer(total_pages)
            canvas.Canvas.showPage(self)
        canvas.Canvas.save(self)

    def _draw_footer(self, total_pages: int) -> None:
        self.saveState()
        self.setFillColor(MUTED)
        self.setFont("Helvetica", 8)
        self.drawCentredString(PAGE_WIDTH / 2, 10 * mm, f"Page {self._pageNumber} of {total_pages}")
        self.restoreState()


def _build_table(rows: Sequence[Sequence[Any]]) -> LongTable:
    data: list[list[Any]] = [[_cell(h, HEADER_CELL_STYLE) for h in HEADERS]]
    if rows:
        data.extend([_cell(v, CELL_STYLE) for v in row] for row in rows)
    else:
        data.append([_cell("No attendance records", CELL_STYLE)] + [_cell("", CELL_STYLE) for _ in HEADERS[1:]])

    table = LongTable(data, colWidths=[CONTENT_WIDTH * w for w in COL_WIDTHS], repeatRows=1, hAlign="LEFT")
    style: list[tuple[Any, ...]] = [
        ("BACKGROUND", (0, 0), (-1, 0), NAVY),
        ("GRID", (0, 0), (-1, -1), 0.4, GRID),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("TOPPADDING", (0, 0), (-1, -1), 4),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
    ]
    for i in range(1, len(data)):
        style.append(("BACKGROUND", (0, i), (-1, i), STRIPE_EVEN if i % 2 else STRIPE_ODD))
    table.setStyle(TableStyle(style))
    return table


def build_attendance_pdf(
    *,
    full_name: str,
    badge_number: str,
    rank: Optional[str],
    department: Optional[str],
    rows: Sequence[Sequence[Any]],
    title: str = "Attendance Report",
    generated_at: Optional[datetime] = None,
) -> bytes:
    """Rows are (date, time in, time out, hours, status, location)."""

    generated = (generated_at or datetime.now()).strftime("%Y-%m-%d %H:%M")
    story: list[Any] = [
        Paragraph("Police Attendance System", TITLE_STYLE),
        Paragraph(escape(title), SUBTITLE_STYLE),
        Paragraph(f"Generated: {generated}", META_STYLE),
        Spacer(1, 8),
        Paragraph(f"Name: {escape(full_name)}", META_STYLE),
        Paragraph(f"Badge Number: {escape(badge_number)}", META_STYLE),
    ]
    if rank:
        story.append(Paragraph(f"Rank: {escape(rank)}", META_STYLE))
    if department:
        story.append(Paragraph(f"Department: {escape(department)}", META_STYLE))
    story.append(Spacer(1, 10))
    story.append(_build_table(rows))

    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=LEFT_MARGIN,
        rightMargin=RIGHT_MARGIN,
        topMargin=TOP_MARGIN,
        bottomMargin=BOTTOM_MARGIN,
        title=title,
    )
    doc.build(story, canvasmaker=NumberedCanvas)
    return buffer.getvalue()
