"""Límites numéricos y tipos de error de la calculadora.

Las comprobaciones de este módulo no guardan estado: clasifican un valor
recién calculado frente a los umbrales de desbordamiento.
"""

import enum
import math
import sys


MAX_MAGNITUDE = sys.float_info.max
# Cota inferior "reflejada" de la superior (≈ 5.56e-309).
MIN_NORMAL_MAGNITUDE = 1 / MAX_MAGNITUDE
EARLY_DIVISION_CUTOFF = MIN_NORMAL_MAGNITUDE
MAX_EXACT_INT = 2 ** 53


class ErrorKind(enum.Enum):
    OVERFLOW = "Overflow"
    UNDERFLOW = "Underflow"
    PRECISION_LIMIT = "Precision limit"
    INVALID_EXPRESSION = "Invalid expression"
    INVALID_REPEAT = "Invalid repeat"

    @property
    def halts_session(self) -> bool:
        """Los errores de salvaguarda bloquean la sesión hasta borrar."""
        return self in (ErrorKind.OVERFLOW, ErrorKind.UNDERFLOW, ErrorKind.PRECISION_LIMIT)

    @property
    def severity(self) -> str:
        return "warning" if self is ErrorKind.UNDERFLOW else "error"


class GuardrailError(ArithmeticError):
    """Un resultado no superó una de las salvaguardas numéricas."""

    def __init__(self, kind: ErrorKind, detail: str = ""):
        super().__init__(detail or kind.value)
        self.kind = kind
        self.detail = detail


def check_float_limits(value: float) -> None:
    """Clasifica ``value`` frente a los límites de magnitud.

    Raises:
        GuardrailError: OVERFLOW si el valor no es finito o supera
            MAX_MAGNITUDE; UNDERFLOW si es distinto de cero y menor que
            MIN_NORMAL_MAGNITUDE en valor absoluto.
    """
    if not math.isfinite(value):
        raise GuardrailError(ErrorKind.OVERFLOW, f"valor no finito: {value}")
    magnitude = abs(value)
    if magnitude > MAX_MAGNITUDE:
        raise GuardrailError(ErrorKind.OVERFLOW, f"|{value}| supera {MAX_MAGNITUDE}")
    if magnitude != 0.0 and magnitude < MIN_NORMAL_MAGNITUDE:
        raise GuardrailError(ErrorKind.UNDERFLOW, f"|{value}| menor que {MIN_NORMAL_MAGNITUDE}")
