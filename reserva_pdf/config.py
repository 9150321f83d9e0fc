"""
Runtime settings, read once from the environment (and a local .env file).
"""
import os

from dotenv import load_dotenv

load_dotenv()


def _float_or_none(raw):
    if raw is None or not raw.strip():
        return None
    try:
        return float(raw)
    except ValueError:
        return None


def _int_or_default(raw, default):
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


ASSET_BASE_URL = os.getenv("RESERVA_ASSET_BASE_URL", "").strip()

# Unset means no timeout.
IMAGE_TIMEOUT = _float_or_none(os.getenv("RESERVA_IMAGE_TIMEOUT"))

JPEG_QUALITY = _int_or_default(os.getenv("RESERVA_JPEG_QUALITY"), 80)

IMAGE_LIBRARY_PATH = os.getenv("RESERVA_IMAGE_LIBRARY") or None

LOG_LEVEL = os.getenv("RESERVA_LOG_LEVEL", "WARNING").upper()

DEFAULT_AGENCY_NAME = "AL Mundo Tours"
