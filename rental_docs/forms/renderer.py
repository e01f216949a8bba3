"""
Layout tree → PDF bytes, via reportlab platypus.

Each logical Page becomes a run of flowables followed by a PageBreak; long
pages flow onto as many physical A4 pages as they need. The footer of the
logical page in progress is drawn on every physical page.

Remote images (logos, signatures, identity documents) are fetched with
requests through an injectable fetcher, cached per render, and bounded both
per request and by a whole-render deadline.

Error mapping:
    requests.Timeout, deadline overrun  → RenderTimeout (retryable)
    anything else while building        → RenderFailure
    output without the %PDF signature   → RenderFailure
"""

import io
import time
import logging
from xml.sax.saxutils import escape as xml_escape

import requests
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_JUSTIFY, TA_LEFT, TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.utils import ImageReader
from reportlab.platypus import (
    BaseDocTemplate, Flowable, Frame, HRFlowable, PageBreak, PageTemplate,
    Paragraph, Table as RLTable, TableStyle,
)
from reportlab.platypus import Image as RLImage
from reportlab.platypus import Spacer as RLSpacer

from ..core import settings
from ..core.errors import DocumentError, RenderFailure, RenderTimeout
from .layout import Box, Document, Image, Row, Rule, Spacer, Table, Text

log = logging.getLogger("rental.renderer")

PDF_SIGNATURE = b"%PDF"
MARGIN = 30
FOOTER_Y = 25

_ALIGN = {"left": TA_LEFT, "center": TA_CENTER, "right": TA_RIGHT, "justify": TA_JUSTIFY}
_H_ALIGN = {"left": "LEFT", "center": "CENTER", "right": "RIGHT", "justify": "LEFT"}


def fetch_image(url: str, timeout: float) -> bytes:
    """Default image fetcher: GET with a bounded timeout."""
    resp = requests.get(url, timeout=timeout)
    resp.raise_for_status()
    return resp.content


def ensure_pdf(pdf_bytes: bytes) -> bytes:
    """Return `pdf_bytes` unchanged, or raise RenderFailure if it is not a PDF."""
    if not pdf_bytes or not pdf_bytes.startswith(PDF_SIGNATURE):
        raise RenderFailure("PDF generado es inválido", header=(pdf_bytes or b"")[:5])
    return pdf_bytes


def pdf_validation(pdf_bytes: bytes) -> dict:
    header = (pdf_bytes or b"")[:5].decode("latin-1")
    return {
        "size": len(pdf_bytes or b""),
        "header": header,
        "is_valid": bool(pdf_bytes) and pdf_bytes.startswith(PDF_SIGNATURE),
    }


class _FooterMarker(Flowable):
    """Zero-size flowable that switches the footer text when drawn."""

    def __init__(self, state: dict, text: str):
        super().__init__()
        self.state = state
        self.text = text

    def wrap(self, avail_width, avail_height):
        return 0, 0

    def draw(self):
        self.state["footer"] = self.text


class _Render:
    """State for one render call: deadline, image cache, style cache."""

    def __init__(self, fetcher, deadline: float, image_timeout: float):
        self.fetcher = fetcher
        self.deadline = deadline
        self.image_timeout = image_timeout
        self.images = {}
        self.styles = {}
        self.state = {"footer": ""}

    # ── Deadline ──

    def remaining(self) -> float:
        return self.deadline - time.monotonic()

    def check_deadline(self):
        if self.remaining() <= 0:
            raise RenderTimeout("PDF rendering exceeded its time limit")

    # ── Images ──

    def image_bytes(self, url: str) -> bytes:
        if url not in self.images:
            self.check_deadline()
            timeout = max(0.1, min(self.image_timeout, self.remaining()))
            t0 = time.monotonic()
            self.images[url] = self.fetcher(url, timeout)
            log.debug("Fetched image %s (%d bytes, %.0fms)", url,
                      len(self.images[url]), (time.monotonic() - t0) * 1000)
        return self.images[url]

    # ── Styles ──

    def style(self, node: Text) -> ParagraphStyle:
        key = (node.size, node.bold, node.italic, node.align, node.color, node.space_after)
        if key not in self.styles:
            font = "Helvetica-Bold" if node.bold else (
                "Helvetica-Oblique" if node.italic else "Helvetica")
            self.styles[key] = ParagraphStyle(
                f"s{len(self.styles)}",
                fontName=font,
                fontSize=node.size,
                leading=node.size * 1.3,
                alignment=_ALIGN.get(node.align, TA_LEFT),
                textColor=colors.HexColor(node.color),
                spaceAfter=node.space_after,
            )
        return self.styles[key]

    # ── Nodes → flowables ──

    def flow(self, node, width: float) -> list:
        if isinstance(node, Text):
            markup = xml_escape(node.text).replace("\n", "<br/>")
            if node.label:
                markup = f"<b>{xml_escape(node.label)}</b> {markup}"
            return [Paragraph(markup, self.style(node))]
        if isinstance(node, Spacer):
            return [RLSpacer(1, node.height)]
        if isinstance(node, Rule):
            return [HRFlowable(width="100%", thickness=node.thickness,
                               color=colors.HexColor(node.color),
                               spaceBefore=node.space_before, spaceAfter=node.space_after)]
        if isinstance(node, Image):
            return [self.image(node, width)]
        if isinstance(node, Box):
            return [self.box(node, width)]
        if isinstance(node, Row):
            return [self.row(node, width)]
        if isinstance(node, Table):
            return [self.table(node, width)]
        raise TypeError(f"unknown layout node: {type(node).__name__}")

    def flow_all(self, nodes, width: float) -> list:
        out = []
        for node in nodes:
            out.extend(self.flow(node, width))
        return out

    def image(self, node: Image, width: float) -> RLImage:
        data = self.image_bytes(node.url)
        draw_w = min(node.width, width)
        if node.height is None:
            img_w, img_h = ImageReader(io.BytesIO(data)).getSize()
            draw_h = draw_w * img_h / float(img_w)
        else:
            draw_h = node.height * draw_w / node.width
        if node.max_height and draw_h > node.max_height:
            draw_w, draw_h = draw_w * node.max_height / draw_h, node.max_height
        flowable = RLImage(io.BytesIO(data), width=draw_w, height=draw_h)
        flowable.hAlign = _H_ALIGN.get(node.align, "LEFT")
        return flowable

    def box(self, node: Box, width: float) -> RLTable:
        inner = width - 2 * node.padding
        table = RLTable([[self.flow_all(node.children, inner)]], colWidths=[width])
        commands = [
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ("LEFTPADDING", (0, 0), (-1, -1), node.padding),
            ("RIGHTPADDING", (0, 0), (-1, -1), node.padding),
            ("TOPPADDING", (0, 0), (-1, -1), node.padding),
            ("BOTTOMPADDING", (0, 0), (-1, -1), node.padding),
        ]
        if node.border:
            commands.append(("BOX", (0, 0), (-1, -1), node.border,
                             colors.HexColor(node.border_color)))
        if node.fill:
            commands.append(("BACKGROUND", (0, 0), (-1, -1), colors.HexColor(node.fill)))
        table.setStyle(TableStyle(commands))
        return table

    def row(self, node: Row, width: float) -> RLTable:
        count = len(node.columns)
        weights = node.weights or (1,) * count
        usable = width - node.gap * (count - 1)
        col_widths, cells = [], []
        for idx, (column, weight) in enumerate(zip(node.columns, weights)):
            col_w = usable * weight / float(sum(weights))
            if idx:
                col_widths.append(node.gap)
                cells.append("")
            col_widths.append(col_w)
            cells.append(self.flow_all(column, col_w))
        table = RLTable([cells], colWidths=col_widths)
        table.setStyle(TableStyle([
            ("VALIGN", (0, 0), (-1, -1), node.valign),
            ("LEFTPADDING", (0, 0), (-1, -1), 0),
            ("RIGHTPADDING", (0, 0), (-1, -1), 0),
            ("TOPPADDING", (0, 0), (-1, -1), 0),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 0),
        ]))
        return table

    def table(self, node: Table, width: float) -> RLTable:
        total = float(sum(c.weight for c in node.columns))
        col_widths = [width * c.weight / total for c in node.columns]
        head = [Paragraph(xml_escape(c.header), self.style(Text(
            c.header, size=node.font_size + 1, bold=True, align=c.align,
            color=node.header_color, space_after=0))) for c in node.columns]
        data = [head]
        for row in node.rows:
            cells = []
            for idx, (cell, column) in enumerate(zip(row.cells, node.columns)):
                bold = row.emphasis and idx == len(node.columns) - 1
                cells.append(Paragraph(xml_escape(cell), self.style(Text(
                    cell, size=node.font_size, bold=bold, align=column.align, space_after=0))))
            data.append(cells)
        table = RLTable(data, colWidths=col_widths, repeatRows=1)
        table.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor(node.header_fill)),
            ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#f5f5f5")]),
            ("LINEBELOW", (0, 0), (-1, -1), 0.5, colors.HexColor("#dddddd")),
            ("BOX", (0, 0), (-1, -1), 1, colors.black),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ("TOPPADDING", (0, 0), (-1, -1), 5),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 5),
        ]))
        return table

    def story(self, document: Document, width: float) -> list:
        story = []
        for idx, page in enumerate(document.pages):
            if idx:
                story.append(PageBreak())
            story.append(_FooterMarker(self.state, page.footer))
            story.extend(self.flow_all(page.children, width))
        return story


class PdfRenderer:
    """Renders a layout Document to PDF bytes.

    `image_fetcher(url, timeout) -> bytes` defaults to an HTTP GET; tests
    inject a local one. `timeout` bounds the whole render, `image_timeout`
    each image request.
    """

    def __init__(self, image_fetcher=None, timeout: float = None,
                 image_timeout: float = None, pagesize=A4):
        self.image_fetcher = image_fetcher or fetch_image
        self.timeout = timeout if timeout is not None else settings.get_float("render_timeout")
        self.image_timeout = (image_timeout if image_timeout is not None
                              else settings.get_float("image_timeout"))
        self.pagesize = pagesize

    def _template(self, buf, document: Document, render: _Render) -> BaseDocTemplate:
        doc = BaseDocTemplate(
            buf,
            pagesize=self.pagesize,
            leftMargin=MARGIN,
            rightMargin=MARGIN,
            topMargin=MARGIN,
            bottomMargin=MARGIN + 20,
            title=document.title,
            author=document.author,
        )
        frame = Frame(doc.leftMargin, doc.bottomMargin, doc.width, doc.height,
                      id="body", leftPadding=0, rightPadding=0,
                      topPadding=0, bottomPadding=0)

        def draw_footer(canv, _doc):
            text = render.state["footer"]
            if not text:
                return
            canv.saveState()
            canv.setFont("Helvetica", 8)
            canv.setFillColor(colors.HexColor("#000000"))
            canv.drawCentredString(self.pagesize[0] / 2.0, FOOTER_Y, text)
            canv.restoreState()

        doc.addPageTemplates([PageTemplate(id="page", frames=[frame], onPageEnd=draw_footer)])
        return doc

    def render(self, document: Document) -> bytes:
        t0 = time.monotonic()
        render = _Render(self.image_fetcher, t0 + self.timeout, self.image_timeout)
        buf = io.BytesIO()
        try:
            doc = self._template(buf, document, render)
            doc.build(render.story(document, doc.width))
            render.check_deadline()
        except DocumentError:
            raise
        except requests.Timeout as e:
            raise RenderTimeout(f"image download timed out: {e}")
        except Exception as e:
            log.error("PDF render failed for %r: %s", document.title, e)
            raise RenderFailure(f"PDF render failed: {e}")

        pdf_bytes = ensure_pdf(buf.getvalue())
        log.info("Rendered %r: %d pages, %d bytes in %.0fms", document.title,
                 len(document.pages), len(pdf_bytes), (time.monotonic() - t0) * 1000)
        return pdf_bytes
