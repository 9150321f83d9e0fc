import base64
import io

import pytest
from PIL import Image
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen.canvas import Canvas

from reserva_pdf.models import AgencyConfig, Reservation


def image_bytes(fmt, color=(200, 40, 40), size=(24, 16), mode="RGB"):
    img = Image.new(mode, size, color)
    buf = io.BytesIO()
    img.save(buf, fmt)
    return buf.getvalue()


def data_url(data, mime="image/png"):
    return f"data:{mime};base64," + base64.b64encode(data).decode("ascii")


class PageRecord:
    def __init__(self):
        self.strings = []
        self.right = []
        self.rects = []
        self.images = []


class RecordingCanvas(Canvas):
    """Canvas that remembers what was drawn on each page."""

    def __init__(self):
        super().__init__(io.BytesIO(), pagesize=A4, invariant=1)
        self.pages = [PageRecord()]
        self.fill = None
        self._busy = False

    def _record(self, bucket, value):
        if not self._busy:
            getattr(self.pages[-1], bucket).append(value)

    def _call(self, fn, *args, **kwargs):
        busy, self._busy = self._busy, True
        try:
            return fn(*args, **kwargs)
        finally:
            self._busy = busy

    def setFillColor(self, aColor, alpha=None):
        self.fill = aColor
        return super().setFillColor(aColor, alpha=alpha)

    def drawString(self, x, y, text, *args, **kwargs):
        self._record("strings", text)
        return self._call(super().drawString, x, y, text, *args, **kwargs)

    def drawCentredString(self, x, y, text, *args, **kwargs):
        self._record("strings", text)
        return self._call(super().drawCentredString, x, y, text, *args, **kwargs)

    def drawRightString(self, x, y, text, *args, **kwargs):
        self._record("strings", text)
        self._record("right", text)
        return self._call(super().drawRightString, x, y, text, *args, **kwargs)

    def rect(self, x, y, width, height, stroke=1, fill=0):
        if fill:
            self._record("rects", (x, y, width, height, self.fill))
        return self._call(super().rect, x, y, width, height, stroke=stroke, fill=fill)

    def drawImage(self, image, x, y, width=None, height=None, **kwargs):
        self._record("images", (x, y, width, height))
        return self._call(super().drawImage, image, x, y, width=width, height=height, **kwargs)

    def showPage(self):
        super().showPage()
        self.pages.append(PageRecord())


@pytest.fixture
def recording_canvas():
    return RecordingCanvas()


@pytest.fixture
def png():
    return image_bytes("PNG")


@pytest.fixture
def jpeg():
    return image_bytes("JPEG", color=(30, 90, 200))


@pytest.fixture
def webp():
    return image_bytes("WEBP", color=(20, 160, 60))


def make_reservation(**overrides):
    raw = {
        "codigoReserva": "AL4167",
        "fechaCreacion": "2025-10-02",
        "nombreCliente": "Laura Gómez",
        "documentoCliente": "CC 1020304050",
        "cantidadAdultos": 4,
        "cantidadNinos": 1,
        "pasajeros": [],
        "fechaInicioViaje": "2025-12-20",
        "fechaFinViaje": "2025-12-27",
        "destinos": [
            {
                "numero": 1,
                "nombre": "San Andrés",
                "pais": "Colombia",
                "fechaInicio": "2025-12-20",
                "fechaFin": "2025-12-27",
            }
        ],
        "vuelos": [],
    }
    raw.update(overrides)
    return Reservation.model_validate(raw)


def make_passengers(n):
    return [
        {"id": str(i), "nombre": f"Pasajero {i}", "numeroDocumento": f"DOC{i:04d}",
         "fechaNacimiento": "1990-01-01"}
        for i in range(n)
    ]


@pytest.fixture
def reservation():
    return make_reservation()


@pytest.fixture
def agency():
    return AgencyConfig(
        nombre="AL Mundo Tours",
        direccion="Cra. 5 #10-41, Oficina 501",
        ciudad="Bogotá, Colombia",
        email="contacto@almundotours.com",
        telefono="+57 601 234 5678",
    )


def no_images(reference):
    return None
