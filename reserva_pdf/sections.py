"""
Section renderers.

Each renderer draws one slice of the reservation at the engine's cursor and
leaves the cursor below what it drew. Renderers call ensure_space before
every sub-block that could run past the bottom of the page; there is no
keep-together look-ahead beyond that single write.

`load_image` is a callable returning a PreparedImage or None.
"""
import logging

from .layout import (
    BLACK, BOLD, CONTENT_BOTTOM, CONTENT_W, CYAN, EXCLUDE_INK, EXCLUDE_TINT,
    HOTEL_TINT, INCLUDE_INK, INCLUDE_TINT, LIGHT_GRAY, MARGIN, MUTED, ORANGE,
    PAGE_W, PHOTO_GRAY, PRIMARY, PURPLE, REGULAR, TEXT, WHITE, to_pt,
    wrap_lines,
)

logger = logging.getLogger(__name__)

MM = to_pt("1mm")

BANNER_H = 50 * MM
INFO_BOX_H = 30 * MM
GLOSSARY_CELL_H = 20 * MM
PASSENGER_ROW_H = 12 * MM
DEST_BAND_H = 10 * MM
HOTEL_BAND_H = 8 * MM
DETAIL_LINE_H = 5 * MM
FLIGHT_BOX_H = 42 * MM
PAYMENT_ROW_H = 8 * MM

PHOTO_W = 30 * MM
PHOTO_H = 20 * MM
PHOTO_GAP = 3 * MM
PHOTO_COLS = 3
MAX_PHOTOS = 6

DESTINATION_GAP = 10 * MM

DEFAULT_BANNER_TITLE = "Su Destino"
TERMS_INTRO = "Para ver los términos y condiciones completos, visite:"
TERMS_LINK_LABEL = "Ver términos y condiciones"
LEGAL_TEXT = (
    "{agency} se acoge a la ley 679 del 2001 para la protección de los niños, "
    "niñas y adolescentes contra la explotación, la pornografía y el turismo "
    "sexual. La persona que atente contra los niños del país será denunciada a "
    "las autoridades. Advertimos a todos nuestros clientes que la explotación y "
    "abuso sexual de menores de edad en el país son sancionados penal y "
    "administrativamente."
)
CLOSING_TEXT = "Gracias por viajar con {agency}, tu viaje comienza aquí"


def _joined(parts, sep=" | "):
    return sep.join(p for p in parts if p)


def _section_title(engine, title, color=TEXT, gap=10 * MM):
    engine.text(title, MARGIN, engine.page_y, BOLD, 16, color)
    engine.advance(gap)


def _detail_line(engine, txt, x, size=9, color=TEXT, height=DETAIL_LINE_H):
    if not txt:
        return
    engine.ensure_space(height)
    engine.text(txt, x, engine.page_y, REGULAR, size, color,
                max_w=PAGE_W - MARGIN - x)
    engine.advance(height)


# ── cover ──────────────────────────────────────────────────────────────────────
def glossary_items(reservation):
    return [
        ("Destinos", len(reservation.destinations), PRIMARY),
        ("Vuelos", len(reservation.flights), ORANGE),
        ("Pasajeros", len(reservation.passengers), PURPLE),
        ("Tours", reservation.tour_count, CYAN),
    ]


def draw_cover(engine, reservation, load_image):
    engine.advance(10 * MM)
    _draw_banner(engine, reservation, load_image)

    engine.text(f"Reserva {reservation.code}", PAGE_W / 2, engine.page_y + 10 * MM,
                BOLD, 28, TEXT, align="center", max_w=CONTENT_W)
    engine.advance(18 * MM)
    engine.text(f"Creado: {reservation.created}", PAGE_W / 2, engine.page_y,
                REGULAR, 10, MUTED, align="center")
    engine.advance(12 * MM)

    draw_travel_info(engine, reservation)
    engine.advance(12 * MM)
    draw_glossary(engine, reservation)
    engine.advance(14 * MM)
    draw_passengers(engine, reservation.passengers)


def _draw_banner(engine, reservation, load_image):
    first = reservation.destinations[0] if reservation.destinations else None
    top = engine.page_y
    img = load_image(first.banner) if first is not None and first.banner else None
    if img is not None:
        engine.image(img, MARGIN, top, CONTENT_W, BANNER_H, preserve=False)
        engine.overlay(MARGIN, top, CONTENT_W, BANNER_H, BLACK, 0.4)
    else:
        engine.fill_rect(MARGIN, top, CONTENT_W, BANNER_H, PRIMARY)
    title = first.name if first is not None and first.name else DEFAULT_BANNER_TITLE
    engine.text(title, PAGE_W / 2, top + 30 * MM, BOLD, 24, WHITE,
                align="center", max_w=CONTENT_W - 10 * MM)
    engine.advance(BANNER_H + 8 * MM)


def draw_travel_info(engine, reservation):
    """Two-column box: trip summary on the left, contact on the right."""
    top = engine.page_y
    engine.fill_rect(MARGIN, top, CONTENT_W, INFO_BOX_H, LIGHT_GRAY)

    left = MARGIN + 10 * MM
    party = f"En base a {reservation.adults} adulto(s)"
    if reservation.children > 0:
        party += f", {reservation.children} niño(s)"
    engine.text("Su Viaje", left, top + 8 * MM, BOLD, 10, TEXT)
    engine.text(party, left, top + 14 * MM, REGULAR, 9, TEXT)
    engine.text(f"{reservation.start_date} - {reservation.end_date}", left,
                top + 20 * MM, REGULAR, 9, TEXT)

    mid = PAGE_W / 2 + 10 * MM
    col_w = PAGE_W - MARGIN - mid - 5 * MM
    engine.text("Contacto", mid, top + 8 * MM, BOLD, 10, TEXT)
    engine.text(reservation.client_name, mid, top + 14 * MM, REGULAR, 9, TEXT,
                max_w=col_w)
    engine.text(f"Doc: {reservation.client_document}", mid, top + 20 * MM,
                REGULAR, 9, MUTED, max_w=col_w)
    if reservation.client_phone:
        engine.text(f"Tel: {reservation.client_phone}", mid, top + 26 * MM,
                    REGULAR, 9, MUTED, max_w=col_w)
    engine.advance(INFO_BOX_H)


def draw_glossary(engine, reservation):
    engine.text("Glosario", MARGIN, engine.page_y, BOLD, 12, ORANGE)
    engine.advance(8 * MM)
    top = engine.page_y
    cell_w = CONTENT_W / 4
    for idx, (label, value, color) in enumerate(glossary_items(reservation)):
        x = MARGIN + idx * cell_w
        cx = x + cell_w / 2 - 2.5 * MM
        engine.fill_rect(x, top, cell_w - 5 * MM, GLOSSARY_CELL_H, LIGHT_GRAY)
        engine.text(str(value), cx, top + 10 * MM, BOLD, 18, color, align="center")
        engine.text(label, cx, top + 16 * MM, REGULAR, 9, TEXT, align="center")
    engine.advance(GLOSSARY_CELL_H)


def draw_passengers(engine, passengers):
    """One shaded row per passenger; each row is checked against the page end."""
    if not passengers:
        return 0
    engine.ensure_space(8 * MM + PASSENGER_ROW_H)
    engine.text("Lista de Pasajeros", MARGIN, engine.page_y, BOLD, 12, TEXT)
    engine.advance(8 * MM)

    for idx, p in enumerate(passengers):
        engine.ensure_space(PASSENGER_ROW_H)
        top = engine.page_y
        shade = LIGHT_GRAY if idx % 2 == 0 else WHITE
        engine.fill_rect(MARGIN, top, CONTENT_W, PASSENGER_ROW_H, shade)
        engine.text(f"{idx + 1}. {p.name}", MARGIN + 5 * MM, top + 6 * MM,
                    REGULAR, 10, TEXT, max_w=CONTENT_W - 10 * MM)
        engine.text(f"Doc: {p.document} | F. Nac: {p.birth_date}",
                    MARGIN + 5 * MM, top + 10 * MM, REGULAR, 9, MUTED,
                    max_w=CONTENT_W - 10 * MM)
        engine.advance(PASSENGER_ROW_H)
    return len(passengers)


# ── itinerary ──────────────────────────────────────────────────────────────────
def draw_itinerary(engine, reservation, load_image):
    if not reservation.destinations:
        return
    engine.new_page()
    _section_title(engine, "Itinerario del Viaje")
    for dest in reservation.destinations:
        logger.debug("Destination %s: %s", dest.number, dest.name)
        draw_destination(engine, dest, load_image)


def draw_destination(engine, dest, load_image):
    engine.ensure_space(DEST_BAND_H + 5 * MM + DETAIL_LINE_H)
    top = engine.page_y
    engine.fill_rect(MARGIN, top, CONTENT_W, DEST_BAND_H, PRIMARY)
    engine.text(f"{dest.number}. {dest.name}, {dest.country}", MARGIN + 5 * MM,
                top + 7 * MM, BOLD, 12, WHITE, max_w=CONTENT_W - 10 * MM)
    engine.advance(DEST_BAND_H + 5 * MM)

    _detail_line(engine, f"{dest.start_date} - {dest.end_date}", MARGIN + 5 * MM,
                 size=10, height=6 * MM)
    if dest.description:
        engine.wrapped(dest.description, MARGIN + 5 * MM, CONTENT_W - 10 * MM,
                       REGULAR, 10, TEXT, leading=DETAIL_LINE_H)
    if dest.points_of_interest:
        pois = ", ".join(p for p in dest.points_of_interest if p and p.strip())
        if pois:
            engine.wrapped(f"Puntos de interés: {pois}", MARGIN + 5 * MM,
                           CONTENT_W - 10 * MM, REGULAR, 9, MUTED,
                           leading=DETAIL_LINE_H)
    engine.advance(5 * MM)

    if dest.hotel is not None:
        draw_hotel(engine, dest.hotel, load_image)
    if dest.tours:
        draw_tours(engine, dest.tours)
    if dest.transfers:
        draw_transfers(engine, dest.transfers)

    engine.advance(DESTINATION_GAP)


def draw_hotel(engine, hotel, load_image):
    engine.ensure_space(HOTEL_BAND_H + 4 * MM)
    top = engine.page_y
    engine.fill_rect(MARGIN + 5 * MM, top, CONTENT_W - 10 * MM, HOTEL_BAND_H, HOTEL_TINT)
    engine.text(hotel.name, MARGIN + 10 * MM, top + 5.5 * MM, BOLD, 11, ORANGE,
                max_w=CONTENT_W - 20 * MM)
    engine.advance(HOTEL_BAND_H + 4 * MM)

    x = MARGIN + 10 * MM
    _detail_line(engine, _joined([
        f"Habitación: {hotel.room_type}" if hotel.room_type else "",
        f"Plan: {hotel.meal_plan}" if hotel.meal_plan else "",
        f"{hotel.nights} noche(s)" if hotel.nights else "",
        f"{hotel.rooms} habitación(es)" if hotel.rooms else "",
    ]), x)
    _detail_line(engine, _joined([
        _joined(["Check-in:", hotel.check_in, hotel.check_in_time], " ")
        if hotel.check_in or hotel.check_in_time else "",
        _joined(["Check-out:", hotel.check_out, hotel.check_out_time], " ")
        if hotel.check_out or hotel.check_out_time else "",
    ]), x)
    _detail_line(engine, _joined([
        f"Dirección: {hotel.address}" if hotel.address else "",
        f"Tel: {hotel.phone}" if hotel.phone else "",
    ]), x)
    if hotel.booking_number:
        _detail_line(engine, f"Reserva hotel: {hotel.booking_number}", x)

    draw_photo_grid(engine, hotel.photos, load_image)

    if hotel.notes:
        engine.wrapped(f"Notas: {hotel.notes}", x, CONTENT_W - 20 * MM, REGULAR,
                       9, MUTED, leading=4 * MM)
    engine.advance(5 * MM)


def draw_photo_grid(engine, photos, load_image):
    """
    Draw up to MAX_PHOTOS in a fixed grid below the cursor.

    Photos past the sixth are ignored, and so is any row that would cross
    the bottom of the page; the grid never forces a page break. Returns the
    number of cells drawn.
    """
    refs = list(photos[:MAX_PHOTOS])
    if not refs:
        return 0
    engine.advance(3 * MM)
    top = engine.page_y
    step_x = PHOTO_W + PHOTO_GAP
    step_y = PHOTO_H + PHOTO_GAP
    drawn = 0
    for i, ref in enumerate(refs):
        col, row = i % PHOTO_COLS, i // PHOTO_COLS
        if top + (row + 1) * step_y > CONTENT_BOTTOM:
            logger.debug("Photo grid truncated at %d of %d", i, len(refs))
            break
        x = MARGIN + 10 * MM + col * step_x
        y = top + row * step_y
        engine.fill_rect(x, y, PHOTO_W, PHOTO_H, PHOTO_GRAY)
        img = load_image(ref)
        if img is not None:
            engine.image(img, x, y, PHOTO_W, PHOTO_H)
        drawn += 1
    rows = -(-drawn // PHOTO_COLS)
    engine.advance(rows * step_y + 3 * MM)
    return drawn


def draw_tours(engine, tours):
    engine.ensure_space(6 * MM + DETAIL_LINE_H)
    engine.text("Tours y Excursiones", MARGIN + 5 * MM, engine.page_y, BOLD, 10, PURPLE)
    engine.advance(6 * MM)

    x = MARGIN + 12 * MM
    for tour in tours:
        engine.ensure_space(DETAIL_LINE_H)
        name = f"• {tour.name}"
        if tour.operator:
            name += f" ({tour.operator})"
        engine.text(name, MARGIN + 10 * MM, engine.page_y, BOLD, 9, TEXT,
                    max_w=CONTENT_W - 15 * MM)
        engine.advance(DETAIL_LINE_H)
        if tour.description:
            engine.wrapped(tour.description, x, CONTENT_W - 20 * MM, REGULAR, 9,
                           TEXT, leading=4 * MM)
        _detail_line(engine, _joined([
            f"Duración: {tour.duration}" if tour.duration else "",
            f"Hora: {tour.start_time}" if tour.start_time else "",
        ]), x, color=MUTED, height=4 * MM)
        engine.advance(3 * MM)
    engine.advance(2 * MM)


def draw_transfers(engine, transfers):
    engine.ensure_space(6 * MM + DETAIL_LINE_H)
    engine.text("Traslados", MARGIN + 5 * MM, engine.page_y, BOLD, 10, CYAN)
    engine.advance(6 * MM)

    for tr in transfers:
        engine.ensure_space(DETAIL_LINE_H)
        engine.text(f"{tr.vehicle}: {tr.origin} -> {tr.destination}",
                    MARGIN + 10 * MM, engine.page_y, REGULAR, 9, TEXT,
                    max_w=CONTENT_W - 15 * MM)
        engine.advance(4 * MM)
        if tr.pickup_time:
            _detail_line(engine, f"Recogida: {tr.pickup_time}", MARGIN + 12 * MM,
                         color=MUTED, height=4 * MM)
        if tr.notes:
            engine.wrapped(tr.notes, MARGIN + 12 * MM, CONTENT_W - 20 * MM,
                           REGULAR, 9, MUTED, leading=4 * MM)
        engine.advance(2 * MM)
    engine.advance(2 * MM)


# ── flights ────────────────────────────────────────────────────────────────────
def flight_info_line(flight):
    return _joined([
        f"Duración: {flight.duration}" if flight.duration else "",
        f"Escalas: {flight.stops}" if flight.stops is not None else "",
        f"Equipaje: {flight.checked_baggage}" if flight.checked_baggage else "",
    ])


def draw_flights(engine, reservation, load_image):
    if not reservation.flights:
        return
    engine.new_page()
    _section_title(engine, "Información de Vuelos", PURPLE)
    for flight in reservation.flights:
        draw_flight(engine, flight, load_image)


def draw_flight(engine, flight, load_image):
    box_h = FLIGHT_BOX_H + (6 * MM if flight.notes else 0)
    engine.ensure_space(box_h)
    top = engine.page_y
    x = MARGIN + 5 * MM
    engine.fill_rect(MARGIN, top, CONTENT_W, box_h, LIGHT_GRAY)

    logo = load_image(flight.airline_logo) if flight.airline_logo else None
    if logo is not None:
        engine.image(logo, x, top + 2 * MM, 30 * MM, 8 * MM)
    else:
        engine.text(flight.airline, x, top + 7 * MM, BOLD, 11, PRIMARY,
                    max_w=CONTENT_W - 10 * MM)

    engine.text(f"Código de reserva: {flight.booking_code}", x, top + 14 * MM,
                REGULAR, 9, TEXT)
    engine.text(f"Fecha: {flight.date}", x, top + 19 * MM, REGULAR, 9, TEXT)

    value_x = MARGIN + 25 * MM
    engine.text("Salida:", x, top + 26 * MM, BOLD, 10, TEXT)
    engine.text(f"{flight.departure_airport} - {flight.departure_time}", value_x,
                top + 26 * MM, REGULAR, 10, TEXT, max_w=CONTENT_W - 30 * MM)
    engine.text("Llegada:", x, top + 32 * MM, BOLD, 10, TEXT)
    engine.text(f"{flight.arrival_airport} - {flight.arrival_time}", value_x,
                top + 32 * MM, REGULAR, 10, TEXT, max_w=CONTENT_W - 30 * MM)

    info = flight_info_line(flight)
    if info:
        engine.text(info, x, top + 38 * MM, REGULAR, 9, MUTED,
                    max_w=CONTENT_W - 10 * MM)
    if flight.notes:
        engine.text(f"Notas: {flight.notes}", x, top + 44 * MM, REGULAR, 9,
                    MUTED, max_w=CONTENT_W - 10 * MM)
    engine.advance(box_h + 5 * MM)


# ── package details ────────────────────────────────────────────────────────────
def _column_lines(engine, items, width):
    lines = []
    for item in items:
        wrapped = wrap_lines(engine.cv, f"• {item}", REGULAR, 9, width)
        if not wrapped:
            continue
        lines.extend([wrapped[0]] + ["  " + ln for ln in wrapped[1:]])
    return lines


def draw_package_details(engine, reservation):
    engine.new_page()
    _section_title(engine, "Detalles del Paquete", gap=15 * MM)

    includes = [s.strip() for s in reservation.includes if s and s.strip()]
    excludes = [s.strip() for s in reservation.excludes if s and s.strip()]
    col_w = (CONTENT_W - 10 * MM) / 2
    right = MARGIN + col_w + 10 * MM

    if includes or excludes:
        engine.ensure_space(15 * MM + DETAIL_LINE_H)
        top = engine.page_y
        if includes:
            engine.fill_rect(MARGIN, top, col_w, 10 * MM, INCLUDE_TINT)
            engine.text("El Paquete Incluye", MARGIN + 5 * MM, top + 7 * MM,
                        BOLD, 11, INCLUDE_INK)
        if excludes:
            engine.fill_rect(right, top, col_w, 10 * MM, EXCLUDE_TINT)
            engine.text("El Paquete No Incluye", right + 5 * MM, top + 7 * MM,
                        BOLD, 11, EXCLUDE_INK)
        engine.advance(15 * MM)

        left_lines = _column_lines(engine, includes, col_w - 10 * MM)
        right_lines = _column_lines(engine, excludes, col_w - 10 * MM)
        for i in range(max(len(left_lines), len(right_lines))):
            engine.ensure_space(DETAIL_LINE_H)
            if i < len(left_lines):
                engine.text(left_lines[i], MARGIN + 5 * MM, engine.page_y,
                            REGULAR, 9, TEXT)
            if i < len(right_lines):
                engine.text(right_lines[i], right + 5 * MM, engine.page_y,
                            REGULAR, 9, TEXT)
            engine.advance(DETAIL_LINE_H)
        engine.advance(5 * MM)

    draw_payment(engine, reservation)


def payment_rows(reservation):
    rows = [
        ("Precio Total:", reservation.total_price, TEXT),
        ("Abono:", reservation.deposit, TEXT),
        ("Saldo Pendiente:", reservation.balance, EXCLUDE_INK),
        ("Fecha Límite de Pago:", reservation.payment_deadline, TEXT),
    ]
    return [(label, value, color) for label, value, color in rows if value]


def draw_payment(engine, reservation):
    if not (reservation.total_price or reservation.deposit or reservation.balance):
        return
    engine.advance(5 * MM)
    engine.ensure_space(15 * MM + PAYMENT_ROW_H)
    engine.fill_rect(MARGIN, engine.page_y, CONTENT_W, 10 * MM, ORANGE)
    engine.text("Información de Pago", MARGIN + 5 * MM, engine.page_y + 7 * MM,
                BOLD, 12, WHITE)
    engine.advance(15 * MM)

    for label, value, color in payment_rows(reservation):
        engine.ensure_space(PAYMENT_ROW_H)
        engine.text(label, MARGIN + 10 * MM, engine.page_y, REGULAR, 11, TEXT)
        engine.text(value, PAGE_W - MARGIN - 10 * MM, engine.page_y, BOLD, 11,
                    color, align="right")
        engine.advance(PAYMENT_ROW_H)


# ── terms ──────────────────────────────────────────────────────────────────────
def draw_terms(engine, reservation, agency):
    engine.new_page()
    _section_title(engine, "Términos y Condiciones", gap=15 * MM)

    if reservation.terms_url:
        engine.text(TERMS_INTRO, MARGIN, engine.page_y, REGULAR, 10, TEXT)
        engine.advance(8 * MM)
        engine.link(TERMS_LINK_LABEL, reservation.terms_url, MARGIN, engine.page_y)
        engine.advance(15 * MM)

    engine.wrapped(LEGAL_TEXT.format(agency=agency.name), MARGIN, CONTENT_W,
                   REGULAR, 9, TEXT, leading=DETAIL_LINE_H)
    engine.advance(10 * MM)

    engine.ensure_space(6 * MM)
    engine.text(CLOSING_TEXT.format(agency=agency.name), PAGE_W / 2,
                engine.page_y, BOLD, 12, PRIMARY, align="center", max_w=CONTENT_W)

    if reservation.notes:
        engine.advance(15 * MM)
        engine.ensure_space(7 * MM + DETAIL_LINE_H)
        engine.text("Notas Adicionales", MARGIN, engine.page_y, BOLD, 10, TEXT)
        engine.advance(7 * MM)
        engine.wrapped(reservation.notes, MARGIN, CONTENT_W, REGULAR, 9, TEXT,
                       leading=DETAIL_LINE_H)
