"""
Reservation PDF Renderer
------------------------
Usage:  python -m reserva_pdf.render <reservation.json> [agency.json] [output.pdf]
"""
import io
import logging
import os
import re
import sys
from collections.abc import Mapping
from functools import partial

from reportlab.pdfgen import canvas

from . import config
from .chrome import draw_chrome
from .images import try_prepare
from .layout import PAGE_H, PAGE_W, LayoutEngine
from .models import (
    AgencyConfig, Reservation, load_agency_config, load_image_library,
    load_reservation,
)
from .sections import (
    draw_cover, draw_flights, draw_itinerary, draw_package_details, draw_terms,
)

logger = logging.getLogger(__name__)


class RenderError(RuntimeError):
    """The document could not be produced."""


def suggested_filename(reservation, agency=None):
    if agency is None:
        agency = AgencyConfig()
    slug = re.sub(r"\s+", "_", agency.name.strip())
    return f"Reservation_{reservation.code}_{slug}.pdf"


def render_reservation(cv, reservation, agency, load_image):
    """
    Lay the whole document out on cv and return the LayoutEngine used.

    The agency logo is normalized once; every page gets the same chrome.
    Sections run in a fixed order and share the engine's cursor and page count.
    """
    logo = load_image(agency.logo) if agency.logo else None
    if agency.logo and logo is None:
        logger.info("Agency logo unavailable, using the agency name instead")

    engine = LayoutEngine(cv)
    engine.set_decoration_cb(lambda eng: draw_chrome(eng, agency, logo))
    engine.decorate()

    logger.debug("Cover page")
    draw_cover(engine, reservation, load_image)
    logger.debug("Itinerary (%d destinations)", len(reservation.destinations))
    draw_itinerary(engine, reservation, load_image)
    logger.debug("Flights (%d)", len(reservation.flights))
    draw_flights(engine, reservation, load_image)
    logger.debug("Package details")
    draw_package_details(engine, reservation)
    logger.debug("Terms")
    draw_terms(engine, reservation, agency)
    return engine


def build_document(reservation, agency=None, library=None, fetch=None):
    """
    Render a reservation; return (PDF bytes, page count).

    `reservation` and `agency` may be models or their JSON dicts. `library`
    is an optional list of ImageLibraryEntry used to resolve image ids;
    `fetch` replaces the HTTP fetcher for remote images. Image failures never
    abort the build; anything else surfaces as RenderError.
    """
    if isinstance(reservation, Mapping):
        reservation = Reservation.model_validate(reservation)
    if agency is None:
        agency = AgencyConfig()
    elif isinstance(agency, Mapping):
        agency = AgencyConfig.model_validate(agency)

    load_image = partial(try_prepare, library=library, fetch=fetch)
    buf = io.BytesIO()
    try:
        cv = canvas.Canvas(buf, pagesize=(PAGE_W, PAGE_H), invariant=1)
        cv.setTitle(f"Reserva {reservation.code}")
        cv.setAuthor(agency.name)
        engine = render_reservation(cv, reservation, agency, load_image)
        cv.save()
    except Exception as exc:
        raise RenderError(
            f"document generation failed for reservation {reservation.code}: {exc}"
        ) from exc

    logger.info("Reservation %s rendered: %d page(s)", reservation.code, engine.page_num)
    return buf.getvalue(), engine.page_num


def build(reservation, agency=None, library=None, fetch=None):
    """Render a reservation into PDF bytes. See build_document()."""
    data, _ = build_document(reservation, agency, library=library, fetch=fetch)
    return data


# ── Command line ───────────────────────────────────────────────────────────────
def render(inp, agency_path=None, out=None, library_path=None):
    print(f"\n{'='*60}\n  Reservation PDF Renderer\n  In : {inp}\n{'='*60}\n")

    print("[1/3] Loading reservation...")
    reservation = load_reservation(inp)
    print(f"      {reservation.code}: {len(reservation.destinations)} destination(s), "
          f"{len(reservation.flights)} flight(s), {len(reservation.passengers)} passenger(s)")

    print("[2/3] Loading agency configuration...")
    agency = load_agency_config(agency_path)
    library = load_image_library(library_path) if library_path else None
    print(f"      {agency.name}")

    print("[3/3] Rendering...")
    data, pages = build_document(reservation, agency, library=library)
    out = out or suggested_filename(reservation, agency)
    with open(out, "wb") as fh:
        fh.write(data)

    print(f"\n  Done -> {out}  ({pages} page(s), {len(data)} bytes)\n")
    return out


if __name__ == "__main__":
    logging.basicConfig(level=config.LOG_LEVEL,
                        format="%(levelname)s %(name)s: %(message)s")
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)
    inp = sys.argv[1]
    if not os.path.exists(inp):
        sys.exit(f"Not found: {inp}")
    agency_path = sys.argv[2] if len(sys.argv) >= 3 else None
    out = sys.argv[3] if len(sys.argv) >= 4 else None
    try:
        render(inp, agency_path, out, config.IMAGE_LIBRARY_PATH)
    except RenderError as exc:
        sys.exit(str(exc))
