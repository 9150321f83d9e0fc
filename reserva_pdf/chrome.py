"""Header and footer bands repeated on every page."""
from .layout import (
    BOLD, FOOTER_Y, HEADER_H, MARGIN, ORANGE, PAGE_W, PRIMARY, REGULAR, SUBTLE,
    WHITE, to_pt,
)

TAGLINE = "Tu viaje comienza aquí"
NO_ADDRESS = "Dirección no configurada"
NO_CONTACT = "Contacto no configurado"

HEADER_LOGO_W = to_pt("30mm")
HEADER_LOGO_H = to_pt("10mm")
FOOTER_LOGO_W = to_pt("25mm")
FOOTER_LOGO_H = to_pt("12mm")


def address_line(agency):
    parts = [p for p in (agency.address, agency.city) if p]
    return ", ".join(parts) if parts else NO_ADDRESS


def contact_line(agency):
    parts = []
    if agency.phone:
        parts.append(f"Tel: {agency.phone}")
    if agency.email:
        parts.append(agency.email)
    return " | ".join(parts) if parts else NO_CONTACT


def draw_header(engine, agency, logo=None):
    engine.fill_rect(0, 0, PAGE_W, HEADER_H, PRIMARY)
    if logo is not None:
        engine.image(logo, MARGIN, (HEADER_H - HEADER_LOGO_H) / 2,
                     HEADER_LOGO_W, HEADER_LOGO_H)
    else:
        engine.text(agency.name, MARGIN, to_pt("10mm"), BOLD, 14, WHITE,
                    max_w=PAGE_W / 2)
    engine.text(TAGLINE, PAGE_W - MARGIN, to_pt("10mm"), REGULAR, 9, WHITE,
                align="right")


def draw_footer(engine, agency, logo=None):
    engine.line(MARGIN, FOOTER_Y - to_pt("3mm"), PAGE_W - MARGIN,
                FOOTER_Y - to_pt("3mm"), ORANGE, 1.4)

    if logo is not None:
        engine.image(logo, MARGIN, FOOTER_Y - to_pt("2mm"),
                     FOOTER_LOGO_W, FOOTER_LOGO_H)
    else:
        engine.text(agency.name, MARGIN, FOOTER_Y + to_pt("3mm"), BOLD, 9,
                    SUBTLE, max_w=to_pt("45mm"))

    mid = PAGE_W / 2
    engine.text(address_line(agency), mid, FOOTER_Y + to_pt("2mm"), REGULAR, 9,
                SUBTLE, align="center", max_w=to_pt("95mm"))
    engine.text(contact_line(agency), mid, FOOTER_Y + to_pt("6mm"), REGULAR, 9,
                SUBTLE, align="center", max_w=to_pt("95mm"))

    engine.text(f"Página {engine.page_num}", PAGE_W - MARGIN,
                FOOTER_Y + to_pt("4mm"), REGULAR, 9, SUBTLE, align="right")


def draw_chrome(engine, agency, logo=None):
    draw_header(engine, agency, logo)
    draw_footer(engine, agency, logo)
