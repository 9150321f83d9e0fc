"""
Layout state and drawing primitives.

Positions are tracked top-down in points (page_y grows towards the bottom of
the page) and converted to ReportLab's bottom-up coordinates at draw time.
"""
import io
import re

from reportlab.lib.colors import HexColor
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader


# ── units ──────────────────────────────────────────────────────────────────────
_U = re.compile(r'^([\-\d.]+)(mm|in|pt|cm)?$')
def to_pt(s):
    if not s: return 0.0
    m = _U.match(str(s).strip())
    if not m: return 0.0
    n, u = float(m.group(1)), m.group(2) or 'pt'
    return n * {'mm':2.8346,'cm':28.346,'in':72.0,'pt':1.0}[u]


# ── page geometry ──────────────────────────────────────────────────────────────
PAGE_W, PAGE_H = A4
MARGIN = to_pt("20mm")
CONTENT_W = PAGE_W - 2 * MARGIN
HEADER_H = to_pt("15mm")
COVER_TOP = to_pt("20mm")
CONTENT_TOP = to_pt("30mm")
FOOTER_Y = PAGE_H - to_pt("18mm")
# Lowest page_y any content may reach; below it sits the footer band.
CONTENT_BOTTOM = PAGE_H - to_pt("25mm")


# ── palette ────────────────────────────────────────────────────────────────────
PRIMARY = HexColor('#242553')
ORANGE = HexColor('#F07E1A')
PURPLE = HexColor('#74388D')
CYAN = HexColor('#50BFD6')
TEXT = HexColor('#333333')
MUTED = HexColor('#787878')
SUBTLE = HexColor('#646464')
LIGHT_GRAY = HexColor('#F5F5F5')
PHOTO_GRAY = HexColor('#DCDCDC')
WHITE = HexColor('#FFFFFF')
BLACK = HexColor('#000000')
HOTEL_TINT = HexColor('#F0F5FF')
INCLUDE_TINT = HexColor('#DCFFDC')
INCLUDE_INK = HexColor('#008000')
EXCLUDE_TINT = HexColor('#FFDCDC')
EXCLUDE_INK = HexColor('#C80000')

REGULAR = "Helvetica"
BOLD = "Helvetica-Bold"


# ── coordinate conversion ──────────────────────────────────────────────────────
def rl_y(page_y, h=0.0):
    """ReportLab y of the bottom edge of a box whose top sits at page_y."""
    return PAGE_H - page_y - h


# ── text helpers ───────────────────────────────────────────────────────────────
def fit_text(c, txt, fname, size, max_w):
    s = str(txt)
    if c.stringWidth(s, fname, size) <= max_w:
        return s
    while len(s) > 1 and c.stringWidth(s + "...", fname, size) > max_w:
        s = s[:-1]
    return s + "..."

def wrap_lines(c, text, fname, size, max_w):
    """Greedy word wrap on rendered string width; blank lines are kept."""
    lines = []
    for para in str(text).replace('\r\n', '\n').replace('\r', '\n').split('\n'):
        current = ""
        for word in para.split():
            test = current + (" " if current else "") + word
            if c.stringWidth(test, fname, size) <= max_w or not current:
                current = test
            else:
                lines.append(current)
                current = word
        lines.append(current)
    while lines and not lines[-1]:
        lines.pop()
    return lines


# ── layout engine ──────────────────────────────────────────────────────────────
class LayoutEngine:
    """Cursor, page counter and page-break rule for one document build."""

    def __init__(self, cv, top=COVER_TOP):
        self.cv = cv
        self.page_y = top
        self.page_num = 1
        self._decoration_cb = None

    def set_decoration_cb(self, cb):
        self._decoration_cb = cb

    def decorate(self):
        if self._decoration_cb:
            self._decoration_cb(self)

    def remaining(self):
        return CONTENT_BOTTOM - self.page_y

    def fits(self, needed):
        return self.page_y + needed <= CONTENT_BOTTOM

    def new_page(self):
        self.cv.showPage()
        self.page_num += 1
        self.page_y = CONTENT_TOP
        self.decorate()

    def ensure_space(self, needed):
        if not self.fits(needed):
            self.new_page()
            return True
        return False

    def advance(self, dy):
        self.page_y += dy

    # ── drawing primitives (page_y based) ─────────────────────────────────────
    def fill_rect(self, x, top, w, h, color):
        c = self.cv
        c.setFillColor(color)
        c.rect(x, rl_y(top, h), w, h, fill=1, stroke=0)

    def text(self, txt, x, baseline, font=REGULAR, size=10, color=TEXT,
             align="left", max_w=None):
        if txt is None or txt == "":
            return
        c = self.cv
        c.setFont(font, size)
        c.setFillColor(color)
        s = fit_text(c, txt, font, size, max_w) if max_w else str(txt)
        y = rl_y(baseline)
        if align == "center":
            c.drawCentredString(x, y, s)
        elif align == "right":
            c.drawRightString(x, y, s)
        else:
            c.drawString(x, y, s)

    def line(self, x1, y1, x2, y2, color, width=0.5):
        c = self.cv
        c.setStrokeColor(color)
        c.setLineWidth(width)
        c.line(x1, rl_y(y1), x2, rl_y(y2))

    def image(self, prepared, x, top, w, h, preserve=True):
        """Embed a PreparedImage with its top-left corner at (x, top)."""
        reader = ImageReader(io.BytesIO(prepared.data))
        self.cv.drawImage(reader, x, rl_y(top, h), width=w, height=h,
                          preserveAspectRatio=preserve, mask='auto')

    def overlay(self, x, top, w, h, color, alpha):
        c = self.cv
        c.saveState()
        c.setFillColor(color, alpha=alpha)
        c.rect(x, rl_y(top, h), w, h, fill=1, stroke=0)
        c.restoreState()

    def link(self, txt, url, x, baseline, font=REGULAR, size=10, color=PRIMARY):
        self.text(txt, x, baseline, font, size, color)
        w = self.cv.stringWidth(txt, font, size)
        y = rl_y(baseline)
        self.cv.linkURL(url, (x, y - 2, x + w, y + size), relative=0)

    def wrapped(self, text, x, max_w, font=REGULAR, size=9, color=TEXT, leading=None):
        """Draw word-wrapped text line by line, breaking pages between lines."""
        leading = leading or size * 1.4
        for ln in wrap_lines(self.cv, text, font, size, max_w):
            self.ensure_space(leading)
            self.text(ln, x, self.page_y, font, size, color)
            self.advance(leading)
