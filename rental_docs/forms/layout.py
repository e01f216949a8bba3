"""
Renderer-independent layout tree.

Assemblers return a Document made of these frozen nodes; PdfRenderer walks
the tree and emits reportlab flowables. Nodes hold only plain values and
tuples, so two assemblies of the same input compare equal.

    Document ─ Page* ─ (Box | Row | Text | Image | Spacer | Rule | Table)*
"""

from dataclasses import dataclass
from typing import Optional, Tuple

BLACK = "#000000"
WHITE = "#ffffff"
GREY = "#666666"
LIGHT = "#f8f9fa"


@dataclass(frozen=True)
class Text:
    text: str
    size: float = 9
    bold: bool = False
    italic: bool = False
    align: str = "left"           # left | center | right | justify
    color: str = BLACK
    space_after: float = 2
    label: str = ""               # bold prefix on the same line


@dataclass(frozen=True)
class Image:
    url: str
    width: float
    height: Optional[float] = None      # None keeps the aspect ratio
    align: str = "left"
    max_height: Optional[float] = None  # both sides shrink to fit


@dataclass(frozen=True)
class Spacer:
    height: float


@dataclass(frozen=True)
class Rule:
    thickness: float = 1
    color: str = BLACK
    space_before: float = 2
    space_after: float = 4


@dataclass(frozen=True)
class Box:
    children: Tuple
    border: float = 1
    border_color: str = BLACK
    fill: Optional[str] = None
    padding: float = 8


@dataclass(frozen=True)
class Row:
    """Side-by-side columns; each column is a tuple of nodes."""
    columns: Tuple[Tuple, ...]
    weights: Optional[Tuple[float, ...]] = None
    gap: float = 10
    valign: str = "TOP"


@dataclass(frozen=True)
class Column:
    header: str
    weight: float = 1
    align: str = "left"


@dataclass(frozen=True)
class TableRow:
    cells: Tuple[str, ...]
    emphasis: bool = False        # bold last cell


@dataclass(frozen=True)
class Table:
    columns: Tuple[Column, ...]
    rows: Tuple[TableRow, ...]
    header_fill: str = BLACK
    header_color: str = WHITE
    font_size: float = 8


@dataclass(frozen=True)
class Page:
    children: Tuple
    footer: str = ""


@dataclass(frozen=True)
class Document:
    title: str
    pages: Tuple[Page, ...]
    author: str = ""


def iter_nodes(node):
    """Depth-first walk over every node below (and including) `node`."""
    yield node
    if isinstance(node, Document):
        for page in node.pages:
            yield from iter_nodes(page)
    elif isinstance(node, (Page, Box)):
        for child in node.children:
            yield from iter_nodes(child)
    elif isinstance(node, Row):
        for column in node.columns:
            for child in column:
                yield from iter_nodes(child)


def iter_text(node):
    """Every visible string in reading order, including table cells."""
    for item in iter_nodes(node):
        if isinstance(item, Text):
            yield f"{item.label} {item.text}".strip() if item.label else item.text
        elif isinstance(item, Table):
            for column in item.columns:
                yield column.header
            for row in item.rows:
                yield from row.cells
        elif isinstance(item, Page) and item.footer:
            yield item.footer


def image_urls(node) -> list:
    return [item.url for item in iter_nodes(node) if isinstance(item, Image)]
