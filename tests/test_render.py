import io
import json
from functools import partial

import pytest
import requests
from pypdf import PdfReader

from conftest import (
    RecordingCanvas, data_url, image_bytes, make_passengers, make_reservation,
    no_images,
)
from reserva_pdf import render as render_mod
from reserva_pdf.chrome import NO_ADDRESS, NO_CONTACT, TAGLINE, address_line, contact_line
from reserva_pdf.images import try_prepare
from reserva_pdf.layout import PHOTO_GRAY, PRIMARY
from reserva_pdf.models import AgencyConfig
from reserva_pdf.render import RenderError, build, render_reservation, suggested_filename
from reserva_pdf.sections import BANNER_H, CLOSING_TEXT, PHOTO_W, TERMS_LINK_LABEL


def page_count(data):
    return len(PdfReader(io.BytesIO(data)).pages)


def record(reservation, agency=None, load_image=no_images):
    cv = RecordingCanvas()
    engine = render_reservation(cv, reservation, agency or AgencyConfig(), load_image)
    return cv, engine


def all_strings(cv):
    return [s for page in cv.pages for s in page.strings]


def test_al4167_scenario():
    r = make_reservation(pasajeros=make_passengers(5))
    data = build(r)
    assert data.startswith(b"%PDF")
    # cover + itinerary + package details + terms
    assert page_count(data) == 4

    cv, engine = record(r)
    assert engine.page_num == 4
    cover = cv.pages[0].strings
    for label, value in [("Destinos", "1"), ("Vuelos", "0"), ("Pasajeros", "5"), ("Tours", "0")]:
        idx = cover.index(label)
        assert cover[idx - 1] == value
    assert "Reserva AL4167" in cover
    assert "En base a 4 adulto(s), 1 niño(s)" in cover
    assert "Información de Vuelos" not in all_strings(cv)
    assert "Itinerario del Viaje" in cv.pages[1].strings
    assert "1. San Andrés, Colombia" in cv.pages[1].strings


def test_no_destinations_omits_itinerary():
    r = make_reservation(destinos=[])
    cv, engine = record(r)
    assert "Itinerario del Viaje" not in all_strings(cv)
    assert engine.page_num == 3
    assert "Su Destino" in cv.pages[0].strings
    assert page_count(build(r)) == 3


def test_flights_section_follows_itinerary():
    flight = {"aerolinea": "LATAM", "codigoReserva": "LA77", "fecha": "2025-12-20",
              "salidaAeropuerto": "BOG", "salidaHora": "06:00",
              "llegadaAeropuerto": "ADZ", "llegadaHora": "08:00", "notas": "Llegar 2h antes"}
    r = make_reservation(vuelos=[flight])
    cv, engine = record(r)
    assert engine.page_num == 5
    page = cv.pages[2].strings
    assert "Información de Vuelos" in page
    assert "LATAM" in page
    assert "Código de reserva: LA77" in page
    assert "Notas: Llegar 2h antes" in page


def test_chrome_on_every_page(agency):
    r = make_reservation(pasajeros=make_passengers(30))
    cv, engine = record(r, agency)
    assert len(cv.pages) == engine.page_num
    for number, page in enumerate(cv.pages, start=1):
        assert TAGLINE in page.strings
        assert "AL Mundo Tours" in page.strings
        assert f"Página {number}" in page.strings
        assert "Cra. 5 #10-41, Oficina 501, Bogotá, Colombia" in page.strings
        assert "Tel: +57 601 234 5678 | contacto@almundotours.com" in page.strings


def test_footer_fallbacks_without_contact():
    agency = AgencyConfig(nombre="Viajes Sol", ciudad="Cali")
    assert contact_line(agency) == NO_CONTACT
    assert address_line(agency) == "Cali"
    assert address_line(AgencyConfig()) == NO_ADDRESS

    cv, _ = record(make_reservation(), agency)
    for page in cv.pages:
        assert NO_CONTACT in page.strings
        assert not any(s.strip() in ("", "|") or s.startswith(" | ") or s.endswith(" | ")
                       for s in page.strings)


def test_contact_line_with_single_field():
    assert contact_line(AgencyConfig(email="a@b.co")) == "a@b.co"
    assert contact_line(AgencyConfig(telefono="123")) == "Tel: 123"


def test_agency_logo_replaces_name_in_chrome(png):
    agency = AgencyConfig(logoUrl=data_url(png))
    cv, engine = record(make_reservation(), agency, partial(try_prepare))
    for page in cv.pages:
        assert "AL Mundo Tours" not in page.strings
        assert len(page.images) >= 2


def test_broken_logo_falls_back_to_text():
    agency = AgencyConfig(logoUrl="https://cdn.example.com/logo.png")

    def fetch(url):
        raise requests.ConnectionError("offline")

    data = build(make_reservation(), agency, fetch=fetch)
    assert page_count(data) == 4
    cv, _ = record(make_reservation(), agency, partial(try_prepare, fetch=fetch))
    for page in cv.pages:
        assert "AL Mundo Tours" in page.strings


def test_banner_placeholder_when_image_fails():
    r = make_reservation(destinos=[{
        "numero": 1, "nombre": "San Andrés", "fechaInicio": "a", "fechaFin": "b",
        "imagenBanner": "https://cdn.example.com/banner.webp",
    }])
    cv, _ = record(r)
    banners = [rect for rect in cv.pages[0].rects if rect[3] == BANNER_H]
    assert len(banners) == 1
    assert banners[0][4] is PRIMARY
    assert cv.pages[0].images == []


def test_banner_image_drawn_when_available(webp):
    r = make_reservation(destinos=[{
        "numero": 1, "nombre": "San Andrés", "fechaInicio": "a", "fechaFin": "b",
        "imagenBanner": data_url(webp, "image/webp"),
    }])
    cv, _ = record(r, load_image=partial(try_prepare))
    assert any(img[3] == BANNER_H for img in cv.pages[0].images)


def test_hotel_with_seven_photos_renders_six(png):
    photos = [data_url(image_bytes("PNG", color=(i * 30, 0, 0))) for i in range(7)]
    r = make_reservation(destinos=[{
        "numero": 1, "nombre": "San Andrés", "fechaInicio": "a", "fechaFin": "b",
        "hotel": {"nombre": "Decameron", "fotos": photos},
    }])
    requested = []

    def load(ref):
        requested.append(ref)
        return try_prepare(ref)

    record(r, load_image=load)
    assert requested == photos[:6]


def test_terms_link_uses_fixed_label():
    url = "https://almundotours.com/terminos"
    r = make_reservation(terminosCondicionesUrl=url, notasGenerales="Traer pasaporte")
    cv, engine = record(r)
    terms = cv.pages[engine.page_num - 1].strings
    assert TERMS_LINK_LABEL in terms
    assert url not in terms
    assert CLOSING_TEXT.format(agency="AL Mundo Tours") in terms
    assert "Notas Adicionales" in terms
    assert "Traer pasaporte" in terms
    assert url.encode() in build(r)


def test_package_details_lists_only_non_empty_items():
    r = make_reservation(incluye=["Hotel", "  ", "", "Desayunos"], noIncluye=["Propinas"],
                         precioTotal="$5.000.000", saldoPendiente="$4.000.000")
    cv, engine = record(r)
    package = cv.pages[engine.page_num - 2]
    assert "El Paquete Incluye" in package.strings
    assert "El Paquete No Incluye" in package.strings
    bullets = [s for s in package.strings if s.startswith("• ")]
    assert bullets == ["• Hotel", "• Propinas", "• Desayunos"]
    assert package.right[-2:] == ["$5.000.000", "$4.000.000"]


def test_build_is_deterministic(png, webp):
    r = make_reservation(
        pasajeros=make_passengers(3),
        destinos=[{
            "numero": 1, "nombre": "San Andrés", "fechaInicio": "a", "fechaFin": "b",
            "imagenBanner": data_url(webp, "image/webp"),
            "hotel": {"nombre": "Decameron", "fotos": [data_url(png)]},
        }],
    )
    agency = AgencyConfig(logoUrl=data_url(png))
    assert build(r, agency) == build(r, agency)


def test_build_accepts_json_documents():
    raw = json.loads(make_reservation().model_dump_json(by_alias=True))
    data = build(raw, {"nombre": "Viajes Sol"})
    assert page_count(data) == 4


def test_unexpected_failure_becomes_render_error(monkeypatch):
    def explode(*args, **kwargs):
        raise ValueError("canvas exploded")

    monkeypatch.setattr(render_mod, "draw_terms", explode)
    with pytest.raises(RenderError) as info:
        build(make_reservation())
    assert isinstance(info.value.__cause__, ValueError)


def test_suggested_filename():
    r = make_reservation()
    assert suggested_filename(r) == "Reservation_AL4167_AL_Mundo_Tours.pdf"
    agency = AgencyConfig(nombre="Viajes   del  Sol")
    assert suggested_filename(r, agency) == "Reservation_AL4167_Viajes_del_Sol.pdf"


def test_render_writes_file(tmp_path, capsys):
    res_path = tmp_path / "reserva.json"
    res_path.write_text(make_reservation().model_dump_json(by_alias=True), encoding="utf-8")
    out = render_mod.render(str(res_path), out=str(tmp_path / "out.pdf"))
    with open(out, "rb") as fh:
        assert page_count(fh.read()) == 4
    assert "4 page(s)" in capsys.readouterr().out


def _corrupt(head):
    return head + b"garbage-bytes" * 5


def test_corrupt_logo_falls_back_to_text():
    agency = AgencyConfig(logoUrl=data_url(_corrupt(b"\x89PNG\r\n\x1a\n")))
    data = build(make_reservation(), agency)
    assert page_count(data) == 4

    cv, _ = record(make_reservation(), agency, partial(try_prepare))
    for page in cv.pages:
        assert "AL Mundo Tours" in page.strings
        assert page.images == []


def test_corrupt_hotel_photo_leaves_placeholder_cell():
    photo = data_url(_corrupt(b"\xff\xd8\xff\xe0"), "image/jpeg")
    r = make_reservation(destinos=[{
        "numero": 1, "nombre": "San Andrés", "fechaInicio": "a", "fechaFin": "b",
        "hotel": {"nombre": "Decameron", "fotos": [photo]},
    }])
    assert page_count(build(r)) == 4

    cv, _ = record(r, load_image=partial(try_prepare))
    cells = [rect for rect in cv.pages[1].rects if rect[2] == PHOTO_W]
    assert len(cells) == 1
    assert cells[0][4] is PHOTO_GRAY
    assert cv.pages[1].images == []
