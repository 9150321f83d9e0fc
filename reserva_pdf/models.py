"""Pydantic models for reservation documents.

JSON documents keep the camelCase Spanish keys written by the reservation
form; attributes are snake_case and accept either spelling on input.
"""
import json
from pathlib import Path
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .config import DEFAULT_AGENCY_NAME


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class Passenger(_Record):
    id: str = ""
    name: str = Field(alias="nombre")
    document: str = Field(alias="numeroDocumento")
    birth_date: str = Field(default="", alias="fechaNacimiento")


class Flight(_Record):
    id: str = ""
    airline: str = Field(alias="aerolinea")
    booking_code: str = Field(alias="codigoReserva")
    date: str = Field(alias="fecha")
    departure_airport: str = Field(alias="salidaAeropuerto")
    departure_time: str = Field(alias="salidaHora")
    arrival_airport: str = Field(alias="llegadaAeropuerto")
    arrival_time: str = Field(alias="llegadaHora")
    duration: Optional[str] = Field(default=None, alias="duracion")
    stops: int = Field(default=0, ge=0, alias="escalas")
    airline_logo: Optional[str] = Field(default=None, alias="logoAerolinea")
    checked_baggage: Optional[str] = Field(default=None, alias="equipajeFacturado")
    notes: Optional[str] = Field(default=None, alias="notas")


class Tour(_Record):
    id: str = ""
    name: str = Field(alias="nombre")
    operator: Optional[str] = Field(default=None, alias="operador")
    description: Optional[str] = Field(default=None, alias="descripcion")
    duration: Optional[str] = Field(default=None, alias="duracion")
    includes: List[str] = Field(default_factory=list, alias="incluye")
    excludes: List[str] = Field(default_factory=list, alias="noIncluye")
    category: Optional[str] = Field(default=None, alias="categoria")
    start_time: Optional[str] = Field(default=None, alias="horaInicio")


class Transfer(_Record):
    id: str = ""
    vehicle: str = Field(alias="tipo")
    origin: str = Field(alias="desde")
    destination: str = Field(alias="hasta")
    pickup_time: Optional[str] = Field(default=None, alias="horaRecogida")
    vehicle_image: Optional[str] = Field(default=None, alias="imagenVehiculo")
    notes: Optional[str] = Field(default=None, alias="notas")


class Hotel(_Record):
    id: str = ""
    name: str = Field(alias="nombre")
    address: Optional[str] = Field(default=None, alias="direccion")
    phone: Optional[str] = Field(default=None, alias="telefono")
    booking_number: Optional[str] = Field(default=None, alias="numeroReserva")
    check_in: Optional[str] = Field(default=None, alias="checkIn")
    check_out: Optional[str] = Field(default=None, alias="checkOut")
    check_in_time: Optional[str] = Field(default=None, alias="horaCheckIn")
    check_out_time: Optional[str] = Field(default=None, alias="horaCheckOut")
    nights: int = Field(default=1, alias="noches")
    rooms: int = Field(default=1, alias="numeroHabitaciones")
    room_type: Optional[str] = Field(default=None, alias="tipoHabitacion")
    meal_plan: Optional[str] = Field(default=None, alias="planAlimentacion")
    photos: List[str] = Field(default_factory=list, alias="fotos")
    notes: Optional[str] = Field(default=None, alias="notas")


class Destination(_Record):
    id: str = ""
    number: int = Field(alias="numero")
    name: str = Field(alias="nombre")
    country: str = Field(default="Colombia", alias="pais")
    start_date: str = Field(alias="fechaInicio")
    end_date: str = Field(alias="fechaFin")
    description: Optional[str] = Field(default=None, alias="descripcion")
    points_of_interest: List[str] = Field(default_factory=list, alias="puntosInteres")
    banner: Optional[str] = Field(default=None, alias="imagenBanner")
    hotel: Optional[Hotel] = None
    tours: List[Tour] = Field(default_factory=list)
    transfers: List[Transfer] = Field(default_factory=list, alias="traslados")


class Reservation(_Record):
    """One travel booking, as saved by the reservation form."""

    id: Optional[str] = None
    code: str = Field(alias="codigoReserva")
    created: str = Field(alias="fechaCreacion")
    client_name: str = Field(alias="nombreCliente")
    client_document: str = Field(alias="documentoCliente")
    client_phone: Optional[str] = Field(default=None, alias="telefonoResponsable")
    adults: int = Field(ge=1, alias="cantidadAdultos")
    children: int = Field(default=0, alias="cantidadNinos")
    passengers: List[Passenger] = Field(default_factory=list, alias="pasajeros")
    start_date: str = Field(alias="fechaInicioViaje")
    end_date: str = Field(alias="fechaFinViaje")
    destinations: List[Destination] = Field(default_factory=list, alias="destinos")
    flights: List[Flight] = Field(default_factory=list, alias="vuelos")
    includes: List[str] = Field(default_factory=list, alias="incluye")
    excludes: List[str] = Field(default_factory=list, alias="noIncluye")
    terms_url: Optional[str] = Field(default=None, alias="terminosCondicionesUrl")
    total_price: Optional[str] = Field(default=None, alias="precioTotal")
    deposit: Optional[str] = Field(default=None, alias="abono")
    balance: Optional[str] = Field(default=None, alias="saldoPendiente")
    payment_deadline: Optional[str] = Field(default=None, alias="fechaPlazoPago")
    notes: Optional[str] = Field(default=None, alias="notasGenerales")

    @property
    def tour_count(self):
        return sum(len(d.tours) for d in self.destinations)


class AgencyConfig(_Record):
    """Identity of the issuing agency. Blank strings count as not configured."""

    name: str = Field(default=DEFAULT_AGENCY_NAME, alias="nombre")
    address: Optional[str] = Field(default=None, alias="direccion")
    city: Optional[str] = Field(default=None, alias="ciudad")
    email: Optional[str] = None
    phone: Optional[str] = Field(default=None, alias="telefono")
    logo: Optional[str] = Field(default=None, alias="logoUrl")

    @field_validator("name", mode="before")
    @classmethod
    def _default_name(cls, v):
        if v is None or not str(v).strip():
            return DEFAULT_AGENCY_NAME
        return str(v).strip()

    @field_validator("address", "city", "email", "phone", "logo", mode="before")
    @classmethod
    def _blank_to_none(cls, v):
        if v is None:
            return None
        v = str(v).strip()
        return v or None


class ImageLibraryEntry(_Record):
    id: str
    name: str = Field(alias="nombre")
    url: str
    category: Literal["destino", "aerolinea", "vehiculo", "hotel"] = Field(alias="categoria")
    destination: Optional[str] = Field(default=None, alias="destino")


# ── JSON loaders ───────────────────────────────────────────────────────────────
def _read_json(path):
    with open(path, "r", encoding="utf-8") as fh:
        return json.load(fh)


def load_reservation(path):
    return Reservation.model_validate(_read_json(path))


def load_agency_config(path=None):
    if path is None or not Path(path).exists():
        return AgencyConfig()
    return AgencyConfig.model_validate(_read_json(path))


def load_image_library(path):
    raw = _read_json(path)
    return [ImageLibraryEntry.model_validate(item) for item in raw]
