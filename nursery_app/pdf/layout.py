"""
PDF document layout
Builders describe a form as a tree of blocks; ``render_pdf`` turns that tree
into an A4 ReportLab document with a header and a fixed footer on every page.
"""
import io
import os
from typing import List, Literal, Optional, Union
from xml.sax.saxutils import escape

from pydantic import BaseModel, Field
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas
from reportlab.platypus import Image, KeepTogether, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from nursery_app.config.settings import settings

# ─── Blocks ────────────────────────────────────────────────────────────────


class FieldRow(BaseModel):
    kind: Literal["field"] = "field"
    label: str
    value: str


class FullWidthField(BaseModel):
    kind: Literal["full_width"] = "full_width"
    label: str
    value: str


class ConsentItem(BaseModel):
    kind: Literal["consent"] = "consent"
    label: str
    granted: bool

    @property
    def marker(self) -> str:
        return "+" if self.granted else "-"


class BulletList(BaseModel):
    kind: Literal["bullets"] = "bullets"
    items: List[str]


class TextLine(BaseModel):
    kind: Literal["text"] = "text"
    text: str
    style: Literal["value", "emphasis", "centered"] = "value"


class InfoBox(BaseModel):
    kind: Literal["info"] = "info"
    text: str
    title: Optional[str] = None


class HighlightBox(BaseModel):
    """Coloured call-out at the top of a form, e.g. medical alerts"""

    kind: Literal["highlight"] = "highlight"
    title: str
    text: Optional[str] = None
    tone: Literal["accent", "denied"] = "accent"


class DeclarationBox(BaseModel):
    kind: Literal["declaration"] = "declaration"
    children: List["Block"] = Field(default_factory=list)


class Section(BaseModel):
    kind: Literal["section"] = "section"
    title: str
    children: List["Block"] = Field(default_factory=list)

    def labels(self) -> List[str]:
        return [child.label for child in self.children if hasattr(child, "label")]


Block = Union[
    Section, FieldRow, FullWidthField, ConsentItem, BulletList, TextLine, InfoBox, HighlightBox, DeclarationBox
]

DeclarationBox.model_rebuild()
Section.model_rebuild()


class PDFDocument(BaseModel):
    title: str
    reference: str
    submitted_at: str
    blocks: List[Block] = Field(default_factory=list)

    def section(self, title: str) -> Optional[Section]:
        for block in self.blocks:
            if isinstance(block, Section) and block.title == title:
                return block
        return None

    def section_titles(self) -> List[str]:
        return [block.title for block in self.blocks if isinstance(block, Section)]


def _is_empty(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip()) or value == []


def field(label: str, value) -> Optional[FieldRow]:
    """Field row, or None when there is nothing to show"""
    if _is_empty(value):
        return None
    return FieldRow(label=label, value=str(value))


def full_width(label: str, value) -> Optional[FullWidthField]:
    if _is_empty(value):
        return None
    return FullWidthField(label=label, value=str(value))


def section(title: str, *children) -> Section:
    return Section(title=title, children=[child for child in children if child is not None])


def declaration(*children) -> DeclarationBox:
    return DeclarationBox(children=[child for child in children if child is not None])


# ─── Rendering ─────────────────────────────────────────────────────────────

PRIMARY = colors.HexColor("#252650")
ACCENT = colors.HexColor("#2C97A9")
TEXT = colors.HexColor("#333333")
TEXT_LIGHT = colors.HexColor("#666666")
BORDER = colors.HexColor("#E5E5E5")
BACKGROUND = colors.HexColor("#F9FAFB")
DENIED = colors.HexColor("#DC2626")

PAGE_WIDTH, PAGE_HEIGHT = A4
MARGIN = 15 * mm
FOOTER_HEIGHT = 22 * mm
CONTENT_WIDTH = PAGE_WIDTH - 2 * MARGIN
LABEL_WIDTH = 55 * mm

_base = getSampleStyleSheet()
STYLES = {
    "title": ParagraphStyle("FormTitle", parent=_base["Title"], fontSize=18, textColor=PRIMARY, alignment=0, spaceAfter=2),
    "meta": ParagraphStyle("Meta", parent=_base["Normal"], fontSize=8, textColor=TEXT_LIGHT, leading=11),
    "section": ParagraphStyle("SectionTitle", parent=_base["Heading2"], fontSize=11, textColor=PRIMARY, spaceBefore=6, spaceAfter=4),
    "label": ParagraphStyle("Label", parent=_base["Normal"], fontSize=9, textColor=TEXT_LIGHT, leading=12),
    "value": ParagraphStyle("Value", parent=_base["Normal"], fontSize=9, textColor=TEXT, leading=12),
    "strong": ParagraphStyle("Strong", parent=_base["Normal"], fontName="Helvetica-Bold", fontSize=10, textColor=TEXT, leading=13),
    "emphasis": ParagraphStyle("Emphasis", parent=_base["Normal"], fontName="Helvetica-Bold", fontSize=13, textColor=PRIMARY, leading=16),
    "centered": ParagraphStyle("Centered", parent=_base["Normal"], fontName="Helvetica-Bold", fontSize=11, textColor=PRIMARY, alignment=TA_CENTER),
}


def _p(text: str, style: str) -> Paragraph:
    return Paragraph(escape(text).replace("\n", "<br/>"), STYLES[style])


def _boxed(flowables, background, border_color=None, left_rule=None) -> Table:
    box = Table([[flowables]], colWidths=[CONTENT_WIDTH])
    commands = [
        ("BACKGROUND", (0, 0), (-1, -1), background),
        ("LEFTPADDING", (0, 0), (-1, -1), 10),
        ("RIGHTPADDING", (0, 0), (-1, -1), 10),
        ("TOPPADDING", (0, 0), (-1, -1), 8),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 8),
    ]
    if border_color is not None:
        commands.append(("BOX", (0, 0), (-1, -1), 0.5, border_color))
    if left_rule is not None:
        commands.append(("LINEBEFORE", (0, 0), (0, -1), 3, left_rule))
    box.setStyle(TableStyle(commands))
    return box


def _flowables(block) -> list:
    if isinstance(block, Section):
        heading = _p(block.title, "section")
        body = [item for child in block.children for item in _flowables(child)]
        # Keep the heading with at least the first row
        return [KeepTogether([heading] + body[:1])] + body[1:] + [Spacer(1, 4 * mm)]

    if isinstance(block, FieldRow):
        row = Table([[_p(block.label, "label"), _p(block.value, "value")]], colWidths=[LABEL_WIDTH, CONTENT_WIDTH - LABEL_WIDTH])
        row.setStyle(TableStyle([
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ("LINEBELOW", (0, 0), (-1, -1), 0.25, BORDER),
            ("LEFTPADDING", (0, 0), (-1, -1), 0),
            ("TOPPADDING", (0, 0), (-1, -1), 3),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 3),
        ]))
        return [row]

    if isinstance(block, FullWidthField):
        return [_p(block.label, "label"), _boxed([_p(block.value, "value")], BACKGROUND, BORDER), Spacer(1, 2 * mm)]

    if isinstance(block, ConsentItem):
        tint = "#059669" if block.granted else "#DC2626"
        marker = Paragraph(f'<font color="{tint}"><b>{block.marker}</b></font>', STYLES["strong"])
        row = Table([[marker, _p(block.label, "value")]], colWidths=[8 * mm, CONTENT_WIDTH - 8 * mm])
        row.setStyle(TableStyle([("LEFTPADDING", (0, 0), (-1, -1), 0), ("VALIGN", (0, 0), (-1, -1), "MIDDLE")]))
        return [row]

    if isinstance(block, BulletList):
        return [_p(f"-  {item}", "value") for item in block.items]

    if isinstance(block, TextLine):
        return [_p(block.text, block.style), Spacer(1, 1.5 * mm)]

    if isinstance(block, InfoBox):
        content = [_p(block.title, "strong")] if block.title else []
        content.append(_p(block.text, "label"))
        return [Spacer(1, 2 * mm), _boxed(content, BACKGROUND, left_rule=ACCENT), Spacer(1, 3 * mm)]

    if isinstance(block, HighlightBox):
        content = [_p(block.title, "strong")]
        if block.text:
            content.append(_p(block.text, "label"))
        rule = DENIED if block.tone == "denied" else ACCENT
        return [_boxed(content, BACKGROUND, left_rule=rule), Spacer(1, 5 * mm)]

    if isinstance(block, DeclarationBox):
        content = [item for child in block.children for item in _flowables(child)]
        return [_boxed(content or [Spacer(1, 1)], BACKGROUND, BORDER, left_rule=PRIMARY), Spacer(1, 2 * mm)]

    raise TypeError(f"Unsupported PDF block: {block!r}")


def _header(document: PDFDocument) -> list:
    details = [
        _p(document.title, "title"),
        _p(f"Ref: {document.reference}", "meta"),
        _p(f"Submitted: {document.submitted_at}", "meta"),
    ]
    logo = None
    if settings.PDF_LOGO_PATH and os.path.exists(settings.PDF_LOGO_PATH):
        logo = Image(settings.PDF_LOGO_PATH, width=45 * mm, height=18 * mm, kind="proportional")

    header = Table([[logo or "", details]], colWidths=[60 * mm, CONTENT_WIDTH - 60 * mm])
    header.setStyle(TableStyle([
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("LINEBELOW", (0, 0), (-1, -1), 2, PRIMARY),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 8),
        ("LEFTPADDING", (0, 0), (-1, -1), 0),
    ]))
    return [header, Spacer(1, 6 * mm)]


class NumberedCanvas(canvas.Canvas):
    """Defers page output so the footer can print 'Page N of M'"""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._saved_page_states = []

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        total = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self.draw_footer(total)
            super().showPage()
        super().save()

    def draw_footer(self, total_pages: int):
        top = MARGIN + FOOTER_HEIGHT - 6 * mm
        self.saveState()
        self.setStrokeColor(BORDER)
        self.setLineWidth(0.5)
        self.line(MARGIN, top + 4 * mm, PAGE_WIDTH - MARGIN, top + 4 * mm)

        self.setFillColor(PRIMARY)
        self.setFont("Helvetica-Bold", 8)
        self.drawString(MARGIN, top, settings.NURSERY_NAME)
        self.setFillColor(TEXT_LIGHT)
        self.setFont("Helvetica", 7)
        self.drawString(MARGIN, top - 10, settings.NURSERY_ADDRESS)
        self.drawString(MARGIN, top - 20, f"Tel: {settings.NURSERY_LANDLINE} | Mobile: {settings.NURSERY_MOBILE}")
        self.drawString(MARGIN, top - 30, f"{settings.NURSERY_EMAIL} | {settings.NURSERY_WEBSITE}")
        self.drawRightString(PAGE_WIDTH - MARGIN, top - 10, f"Page {self._pageNumber} of {total_pages}")
        self.restoreState()


def render_pdf(document: PDFDocument) -> bytes:
    """Render a document to PDF bytes"""
    stream = io.BytesIO()
    doc = SimpleDocTemplate(
        stream,
        pagesize=A4,
        leftMargin=MARGIN,
        rightMargin=MARGIN,
        topMargin=MARGIN,
        bottomMargin=MARGIN + FOOTER_HEIGHT,
        title=f"{document.title} - {document.reference}",
        author=settings.NURSERY_NAME,
    )
    elems = _header(document)
    for block in document.blocks:
        elems.extend(_flowables(block))
    doc.build(elems, canvasmaker=NumberedCanvas)
    return stream.getvalue()
