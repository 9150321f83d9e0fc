"""Reservation PDF renderer."""

from .models import AgencyConfig, Reservation
from .render import RenderError, build, build_document, suggested_filename

__all__ = [
    "AgencyConfig", "Reservation", "RenderError", "build", "build_document",
    "suggested_filename",
]
