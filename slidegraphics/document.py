"""
document.py — Destination document model.

Wraps a python-pptx Presentation with the bookkeeping the graphics context
needs while it emits shapes:

- Page: one slide plus an arena of PersistedShape records in z-order, and the
  stack of open groups new shapes are nested into
- PictureHandle: an embedded PNG, deduplicated by content hash
- FontTable: font families the theme (or the caller) makes addressable by
  index instead of by name

Anchors stored on records are device units (points); python-pptx objects
carry the EMU equivalents.
"""

import hashlib
import logging
from dataclasses import dataclass, field
from enum import Enum
from io import BytesIO
from pathlib import Path
from typing import Any, BinaryIO, Dict, List, Optional, Union

from lxml import etree
from PIL import Image
from pptx import Presentation
from pptx.opc.constants import RELATIONSHIP_TYPE as RT

from slidegraphics.geometry.shapes import Rect
from slidegraphics.paint import Color
from slidegraphics.units import DEFAULT_FONT_FAMILY, pt_to_emu

logger = logging.getLogger(__name__)

NSMAP = {"a": "http://schemas.openxmlformats.org/drawingml/2006/main"}

# Theme font references understood by DrawingML text runs
THEME_MINOR_FONT = "+mn-lt"
THEME_MAJOR_FONT = "+mj-lt"

# Font table entries for the theme fonts
BODY_FONT_INDEX = 0
HEADING_FONT_INDEX = 1

# Blank layout in the default template
BLANK_LAYOUT_INDEX = 6


class ShapeKind(str, Enum):
    """Kinds of persisted shapes."""

    LINE = "line"
    RECT = "rect"
    ROUND_RECT = "round_rect"
    ELLIPSE = "ellipse"
    ARC = "arc"
    FREEFORM = "freeform"
    PICTURE = "picture"
    TEXT_BOX = "text_box"
    GROUP = "group"


@dataclass(frozen=True)
class PictureHandle:
    """An image registered with the document."""
    index: int
    sha1: str
    blob: bytes
    width_px: int
    height_px: int
    content_type: str = "image/png"


@dataclass
class PersistedShape:
    """One emitted shape, as recorded in the page arena."""
    index: int
    kind: ShapeKind
    anchor: Rect
    element: Any
    parent: Optional[int] = None
    name: Optional[str] = None
    children: List[int] = field(default_factory=list)
    fill_color: Optional[Color] = None
    line_color: Optional[Color] = None
    line_width: Optional[float] = None
    dash: Optional[str] = None
    rotation: float = 0.0
    flip_v: bool = False
    picture: Optional[PictureHandle] = None
    text: Optional[str] = None
    font_index: Optional[int] = None
    effect: Optional[str] = None


# =============================================================================
# FONT TABLE
# =============================================================================


def _theme_fonts(prs: Presentation) -> tuple[str, str]:
    """Latin (minor, major) typefaces of the first slide master's theme."""
    try:
        theme_part = prs.slide_master.part.part_related_by(RT.THEME)
        root = etree.fromstring(theme_part.blob)
    except (KeyError, etree.XMLSyntaxError) as e:
        logger.debug(f"No readable theme, using default fonts: {e}")
        return DEFAULT_FONT_FAMILY, DEFAULT_FONT_FAMILY

    def typeface(path: str) -> str:
        latin = root.find(path, NSMAP)
        if latin is None or not latin.get("typeface"):
            return DEFAULT_FONT_FAMILY
        return latin.get("typeface")

    minor = typeface(".//a:fontScheme/a:minorFont/a:latin")
    major = typeface(".//a:fontScheme/a:majorFont/a:latin")
    return minor, major


class FontTable:
    """Font families addressable by index.

    Index 0 is the theme's body (minor) font and index 1 its heading (major)
    font; both resolve to theme references so text follows the theme.
    Families registered later resolve to their own name.
    """

    def __init__(self, minor: str = DEFAULT_FONT_FAMILY, major: str = DEFAULT_FONT_FAMILY):
        self._entries: List[tuple[str, str]] = [
            (minor, THEME_MINOR_FONT),
            (major, THEME_MAJOR_FONT),
        ]

    @classmethod
    def from_presentation(cls, prs: Presentation) -> "FontTable":
        minor, major = _theme_fonts(prs)
        return cls(minor, major)

    def lookup(self, family: str) -> Optional[int]:
        """Index of the first entry for ``family`` (case-insensitive), or None."""
        wanted = family.strip().lower()
        for index, (name, _) in enumerate(self._entries):
            if name.lower() == wanted:
                return index
        return None

    def register(self, family: str) -> int:
        existing = self.lookup(family)
        if existing is not None:
            return existing
        self._entries.append((family, family))
        return len(self._entries) - 1

    def family(self, index: int) -> str:
        return self._entries[index][0]

    def typeface(self, index: int) -> str:
        """Typeface string written into text runs for an entry."""
        return self._entries[index][1]

    def __len__(self) -> int:
        return len(self._entries)


# =============================================================================
# PAGE
# =============================================================================


class Page:
    """A slide and the arena of shapes emitted onto it."""

    def __init__(self, document: "SlideDocument", slide: Any, width: float, height: float):
        self.document = document
        self.slide = slide
        self.width = width
        self.height = height
        self.shapes: List[PersistedShape] = []
        self._group_stack: List[int] = []

    # -------------------------------------------------------------------------
    # Arena
    # -------------------------------------------------------------------------

    def add_shape(self, kind: ShapeKind, element: Any, anchor: Rect, **attributes) -> PersistedShape:
        """Record an emitted shape under the open group (or the slide)."""
        parent = self.current_group
        record = PersistedShape(
            index=len(self.shapes),
            kind=kind,
            anchor=anchor,
            element=element,
            parent=parent,
            **attributes,
        )
        self.shapes.append(record)
        if parent is not None:
            self.shapes[parent].children.append(record.index)
        return record

    def roots(self) -> List[PersistedShape]:
        return [s for s in self.shapes if s.parent is None]

    def children_of(self, index: int) -> List[PersistedShape]:
        return [self.shapes[i] for i in self.shapes[index].children]

    def of_kind(self, kind: ShapeKind) -> List[PersistedShape]:
        return [s for s in self.shapes if s.kind is kind]

    # -------------------------------------------------------------------------
    # Groups
    # -------------------------------------------------------------------------

    @property
    def current_group(self) -> Optional[int]:
        return self._group_stack[-1] if self._group_stack else None

    @property
    def group_depth(self) -> int:
        return len(self._group_stack)

    def push_group(self, record: PersistedShape) -> None:
        self._group_stack.append(record.index)

    def pop_group(self) -> Optional[PersistedShape]:
        if not self._group_stack:
            return None
        return self.shapes[self._group_stack.pop()]

    def container(self) -> Any:
        """python-pptx shape collection new shapes are added to."""
        group = self.current_group
        if group is None:
            return self.slide.shapes
        return self.shapes[group].element.shapes


# =============================================================================
# DOCUMENT
# =============================================================================


class SlideDocument:
    """A presentation being produced by one or more graphics contexts."""

    def __init__(self, presentation: Optional[Presentation] = None):
        self.presentation = presentation if presentation is not None else Presentation()
        self.pages: List[Page] = []
        self.pictures: List[PictureHandle] = []
        self._pictures_by_hash: Dict[str, PictureHandle] = {}
        self.font_table = FontTable.from_presentation(self.presentation)

    def create_slide(self, width: float, height: float) -> Page:
        """Append a blank slide; the first slide also sets the page size.

        Args:
            width: Page width in device units (points).
            height: Page height in device units (points).

        Returns:
            The new Page.
        """
        prs = self.presentation
        if not self.pages:
            prs.slide_width = pt_to_emu(width)
            prs.slide_height = pt_to_emu(height)
        layouts = prs.slide_layouts
        layout = layouts[min(BLANK_LAYOUT_INDEX, len(layouts) - 1)]
        page = Page(self, prs.slides.add_slide(layout), width, height)
        self.pages.append(page)
        return page

    def add_picture(self, png_bytes: bytes) -> PictureHandle:
        """Register an encoded image; identical bytes share one handle.

        Raises:
            OSError: If the bytes are not a readable image.
        """
        digest = hashlib.sha1(png_bytes).hexdigest()
        if digest in self._pictures_by_hash:
            return self._pictures_by_hash[digest]
        with Image.open(BytesIO(png_bytes)) as img:
            width_px, height_px = img.size
            content_type = Image.MIME.get(img.format or "PNG", "image/png")
        handle = PictureHandle(
            index=len(self.pictures),
            sha1=digest,
            blob=png_bytes,
            width_px=width_px,
            height_px=height_px,
            content_type=content_type,
        )
        self.pictures.append(handle)
        self._pictures_by_hash[digest] = handle
        return handle

    def save(self, output: Union[str, Path, BinaryIO, None] = None) -> bytes | None:
        """Write the presentation.

        Args:
            output: Output path, file object, or None to return bytes.

        Returns:
            PPTX bytes if output is None, otherwise None.
        """
        if output is None:
            buffer = BytesIO()
            self.presentation.save(buffer)
            buffer.seek(0)
            return buffer.read()
        elif isinstance(output, (str, Path)):
            self.presentation.save(str(output))
            return None
        else:
            self.presentation.save(output)
            return None
