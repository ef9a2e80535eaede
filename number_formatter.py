"""Formato de resultados numéricos para la pantalla de la calculadora.

El formateador recibe un float (nunca una cadena) y devuelve el texto a
mostrar según el estilo elegido por quien llama. Quitar separadores de
una pantalla anterior antes de volver a formatearla es responsabilidad
del llamador (ver strip_separators).
"""

import logging
import math
from decimal import Decimal
from enum import Enum

logger = logging.getLogger(__name__)

OVERFLOW_TEXT = "Error: Overflow"
INVALID_TEXT = "Error: Invalid"

SCI_NOTATION_UPPER = 1e15
SCI_NOTATION_LOWER = 1e-15
SIGNIFICANT_DIGITS = 15
SCI_MANTISSA_DIGITS = 12
FIXED_DECIMALS = 6
ENG_MANTISSA_DECIMALS = 9


class DisplayFormat(Enum):
    REGULAR = "regular"
    FIXED = "fixed"
    SCIENTIFIC = "scientific"
    ENGINEERING = "engineering"
    TRIADS = "triads"

    @classmethod
    def parse(cls, style) -> "DisplayFormat":
        """Acepta el miembro o su nombre/valor sin distinguir mayúsculas."""
        if isinstance(style, cls):
            return style
        try:
            return cls(str(style).strip().lower())
        except ValueError:
            names = ", ".join(member.value for member in cls)
            raise ValueError(f"Formato desconocido: {style!r} (usa {names})") from None


def format_number(value: float, style=DisplayFormat.REGULAR) -> str:
    style = DisplayFormat.parse(style)

    if math.isnan(value):
        return INVALID_TEXT
    if math.isinf(value):
        return OVERFLOW_TEXT

    if style is DisplayFormat.FIXED:
        return f"{value:.{FIXED_DECIMALS}f}"
    if style is DisplayFormat.SCIENTIFIC:
        return _scientific(value)
    if style is DisplayFormat.ENGINEERING:
        return _engineering(value)
    if style is DisplayFormat.TRIADS:
        return _triads(value)
    return _regular(value)


# ── Estilos ──────────────────────────────────────────────────────

def _regular(value: float) -> str:
    magnitude = abs(value)
    if magnitude >= SCI_NOTATION_UPPER or 0 < magnitude < SCI_NOTATION_LOWER:
        return _scientific(value)
    return _plain_decimal(value)


def _scientific(value: float) -> str:
    return f"{value:.{SCI_MANTISSA_DIGITS}e}"


def _engineering(value: float) -> str:
    if value == 0:
        return "0e+0"

    sign = "-" if value < 0 else ""
    magnitude = Decimal(repr(abs(value)))

    exponent = (magnitude.adjusted() // 3) * 3
    mantissa = f"{magnitude.scaleb(-exponent):.{ENG_MANTISSA_DECIMALS}f}"
    # El redondeo puede llevar 999.9999999995 a 1000.
    if Decimal(mantissa) >= 1000:
        exponent += 3
        mantissa = f"{magnitude.scaleb(-exponent):.{ENG_MANTISSA_DECIMALS}f}"

    return f"{sign}{_trim_fraction(mantissa)}e{exponent:+d}"


def _triads(value: float) -> str:
    text = _plain_decimal(value)
    integer_part, dot, decimal_part = text.partition(".")
    return add_thousands_separators(integer_part) + dot + decimal_part


# ── Utilidades ───────────────────────────────────────────────────

def _plain_decimal(value: float) -> str:
    """Decimal fijo con SIGNIFICANT_DIGITS cifras, sin ceros sobrantes.

    Los valores enteros se escriben con todos sus dígitos exactos.
    """
    if value == 0:
        return "0"
    if float(value).is_integer():
        return str(int(value))
    rounded = Decimal(f"{value:.{SIGNIFICANT_DIGITS}g}")
    return _trim_fraction(format(rounded, "f"))


def _trim_fraction(text: str) -> str:
    if "." not in text:
        return text
    return text.rstrip("0").rstrip(".")


def add_thousands_separators(text: str, separator: str = ",") -> str:
    """Inserta un separador cada tres dígitos contando desde la derecha."""
    negative = text.startswith("-")
    digits = text[1:] if negative else text

    length = len(digits)
    grouped = []
    for i, char in enumerate(digits):
        if i > 0 and (length - i) % 3 == 0:
            grouped.append(separator)
        grouped.append(char)

    result = "".join(grouped)
    return f"-{result}" if negative else result


def strip_separators(text: str, separator: str = ",") -> str:
    return text.replace(separator, "").strip()


def parse_display(text: str) -> float:
    """Vuelve a leer una pantalla formateada (con o sin separadores)."""
    cleaned = strip_separators(text)
    try:
        return float(cleaned)
    except ValueError:
        logger.debug("Pantalla no numérica: %r", text)
        raise ValueError(f"No es un número: {text!r}") from None
