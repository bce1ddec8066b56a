"""
Validadores y normalizadores compartidos por los esquemas
"""
import re
from datetime import date, datetime, timezone
from typing import Annotated, Any, Optional

from email_validator import EmailNotValidError, validate_email
from pydantic import BeforeValidator


def normalize_timestamp(value: Any) -> datetime:
    """
    Normaliza las distintas representaciones de un timestamp a datetime UTC.

    Formatos aceptados:
    - datetime (naive se asume UTC) y date
    - objetos epoch {"seconds": n} / {"_seconds": n} (con nanoseconds opcional)
    - objetos con to_datetime() / ToDatetime() / toDate()
    - strings ISO-8601 (acepta sufijo Z)

    Cualquier otro valor (None, basura) se convierte en el instante actual.
    """
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)

    if isinstance(value, dict):
        seconds = value.get("seconds", value.get("_seconds"))
        if isinstance(seconds, (int, float)) and not isinstance(seconds, bool):
            nanos = value.get("nanoseconds", value.get("_nanoseconds")) or 0
            return datetime.fromtimestamp(seconds + nanos / 1e9, tz=timezone.utc)
        return datetime.now(timezone.utc)

    for method_name in ("to_datetime", "ToDatetime", "toDate"):
        method = getattr(value, method_name, None)
        if callable(method):
            converted = method()
            if isinstance(converted, datetime):
                return normalize_timestamp(converted)

    if isinstance(value, str) and value.strip():
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            return normalize_timestamp(datetime.fromisoformat(raw))
        except ValueError:
            pass

    return datetime.now(timezone.utc)


def timestamp_to_iso(value: Any) -> str:
    """Timestamp normalizado como string ISO-8601."""
    return normalize_timestamp(value).isoformat()


def validate_optional_email(value: Optional[str]) -> Optional[str]:
    """Email válido o vacío. Los vacíos se guardan como string vacío."""
    if value is None:
        return value
    value = value.strip()
    if value == "":
        return value
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        raise ValueError('Email debe tener formato válido')
    return value


HEX_COLOR_PATTERN = re.compile(r'^#(?:[0-9a-fA-F]{3}){1,2}$')


def validate_hex_color(value: str) -> str:
    if not HEX_COLOR_PATTERN.match(value):
        raise ValueError('Color inválido. Use formato hexadecimal (#RRGGBB)')
    return value.lower()


# Tipo para esquemas de salida: cualquier representación de timestamp -> ISO string
IsoTimestamp = Annotated[str, BeforeValidator(timestamp_to_iso)]
OptionalIsoTimestamp = Annotated[
    Optional[str],
    BeforeValidator(lambda v: None if v is None else timestamp_to_iso(v))
]
