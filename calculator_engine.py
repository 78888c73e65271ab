"""
Motor de cálculo de la calculadora.

Este módulo provee la clase CalculatorEngine, que mantiene la expresión
pendiente, evalúa con FormulaEvaluator y aplica las salvaguardas numéricas
(desbordamiento, subdesbordamiento, agotamiento de precisión, tendencia
monótona, techo de enteros exactos y cadenas de divisiones) antes de
aceptar un resultado.

Contrato de interfaz:
    - press(label: str)
    - on_digit_or_dot(char) / on_operator(symbol) / on_evaluate() / on_clear()
    - expression, result, error_text, error_kind, severity, limit_reached

El estado de la sesión no es seguro para llamadas concurrentes: usar una
instancia por sesión y serializar las llamadas.
"""

import enum
import re
from dataclasses import dataclass, field

from mpmath import mp

from formula_evaluator import (
    MULTIPLICATIVE,
    OPERATORS,
    Evaluation,
    FormulaEvaluator,
    ParseError,
    is_pure_integer_expression,
)
from guardrails import (
    EARLY_DIVISION_CUTOFF,
    MAX_EXACT_INT,
    ErrorKind,
    GuardrailError,
    check_float_limits,
)
from logging_config import get_logger
from repeat_tracker import RepeatTracker, Trend


log = get_logger("engine")

NEAR_INTEGER_EPS = 1e-9
PLAIN_INTEGER_LIMIT = 1e15
SCI_UPPER_LIMIT = 1e12
SCI_LOWER_LIMIT = 1e-6
SCI_SIGNIFICANT_DIGITS = 11     # 1 entero + 10 decimales


# ── Formato del resultado ────────────────────────────────────────

def _near_integer(value: float) -> bool:
    return abs(value - round(value)) < NEAR_INTEGER_EPS


def format_number(value: float, int_mode: bool) -> str:
    """Convierte un valor finito en el texto que muestra la pantalla."""
    if int_mode and _near_integer(value):
        return str(int(round(value)))
    if not int_mode and _near_integer(value) and abs(value) < PLAIN_INTEGER_LIMIT:
        return str(int(round(value)))

    magnitude = abs(value)
    if magnitude >= SCI_UPPER_LIMIT or (magnitude > 0 and magnitude < SCI_LOWER_LIMIT):
        scientific = mp.nstr(
            mp.mpf(value),
            n=SCI_SIGNIFICANT_DIGITS,
            min_fixed=0,
            max_fixed=0,
        )
        return scientific.replace(".0e", "e")

    return str(value)


# ── Estado de la sesión ──────────────────────────────────────────

class Status(enum.Enum):
    ACTIVE = "active"
    HALTED = "halted"


@dataclass
class SessionState:
    expression: str = ""
    result: str = ""
    last_value: float | None = None
    last_int_mode: bool = False
    trend: Trend = Trend.NONE
    sequential_divisions: int = 0
    status: Status = Status.ACTIVE
    error: ErrorKind | None = None
    repeat: RepeatTracker = field(default_factory=RepeatTracker)

    def reset(self):
        self.expression = ""
        self.result = ""
        self.last_value = None
        self.last_int_mode = False
        self.trend = Trend.NONE
        self.sequential_divisions = 0
        self.status = Status.ACTIVE
        self.error = None
        self.repeat.clear()

    def forget_result(self):
        """Olvida el resultado mostrado al empezar una entrada nueva."""
        self.result = ""
        self.last_value = None
        self.trend = Trend.NONE
        self.sequential_divisions = 0
        self.repeat.clear()


class CalculatorEngine:
    """Procesa las pulsaciones y valida cada resultado antes de mostrarlo."""

    TREND_REL_EPS = 1e-12       # tolerancia de la tendencia decreciente
    STALL_REL_EPS = 1e-15       # cambio relativo mínimo en una división
    MAX_SEQUENTIAL_DIVISIONS = 512
    MAX_EXACT_INT = MAX_EXACT_INT
    EARLY_DIVISION_CUTOFF = EARLY_DIVISION_CUTOFF

    def __init__(self):
        self._evaluator = FormulaEvaluator()
        self.state = SessionState()

    # ── Estado observable ────────────────────────────────────────

    @property
    def expression(self) -> str:
        return self.state.expression

    @property
    def result(self) -> str:
        return self.state.result

    @property
    def error_kind(self) -> ErrorKind | None:
        return self.state.error

    @property
    def error_text(self) -> str:
        return self.state.error.value if self.state.error else ""

    @property
    def severity(self) -> str | None:
        return self.state.error.severity if self.state.error else None

    @property
    def limit_reached(self) -> bool:
        return self.state.status is Status.HALTED

    # ── Acciones ─────────────────────────────────────────────────

    def press(self, label: str):
        if label == "C":
            self.on_clear()
        elif label == "=":
            self.on_evaluate()
        elif label in OPERATORS:
            self.on_operator(label)
        else:
            self.on_digit_or_dot(label)

    def on_clear(self):
        self.state.reset()

    def on_digit_or_dot(self, char: str):
        if len(char) != 1 or char not in "0123456789.":
            raise ValueError(f"Tecla no válida: {char!r}")
        if not self._begin_action():
            return

        state = self.state
        if state.result and not state.expression:
            state.forget_result()
            state.expression = char
            return

        if char == ".":
            segment = re.split(r"[+\-×÷]", state.expression)[-1]
            if "." in segment:
                return
        state.expression += char

    def on_operator(self, symbol: str):
        if symbol not in OPERATORS:
            raise ValueError(f"Operador no válido: {symbol!r}")
        if not self._begin_action():
            return

        state = self.state
        if not state.expression:
            if state.result:
                state.expression = state.result + symbol
                state.result = ""
            return

        if state.expression[-1] in OPERATORS:
            state.expression = state.expression[:-1] + symbol
        else:
            state.expression += symbol

    def on_evaluate(self):
        if not self._begin_action():
            return
        if self.state.expression:
            self._evaluate_current()
        else:
            self.repeat_last_operation()

    def _begin_action(self) -> bool:
        if self.limit_reached:
            log.debug("Sesión detenida por %s: solo se acepta borrar", self.error_text)
            return False
        self.state.error = None
        return True

    # ── Evaluación ───────────────────────────────────────────────

    def _evaluate_current(self):
        state = self.state
        expression = state.expression
        try:
            evaluation = self._evaluator.evaluate(expression)
        except ParseError as exc:
            log.info("Expresión inválida %r: %s", expression, exc)
            state.error = ErrorKind.INVALID_EXPRESSION
            state.result = ""
            return

        if not self._accept(evaluation, expression, evaluation.operator):
            return
        state.trend = state.repeat.capture(evaluation)
        state.expression = ""

    def repeat_last_operation(self):
        """Aplica de nuevo el último "operador operando" sobre el resultado."""
        state = self.state
        if self.limit_reached or not state.result or not state.repeat.has_data:
            return

        expression = state.repeat.build_expression(state.result)
        try:
            evaluation = self._evaluator.evaluate(expression)
        except ParseError as exc:
            log.info("Repetición inválida %r: %s", expression, exc)
            state.error = ErrorKind.INVALID_REPEAT
            return

        self._accept(evaluation, expression, state.repeat.operator)

    def _accept(self, evaluation: Evaluation, expression: str, op: str | None) -> bool:
        int_mode = is_pure_integer_expression(expression)
        try:
            self.finalize(evaluation.value, int_mode, op, exact=evaluation.exact)
        except GuardrailError as exc:
            log.warning("%s al evaluar %r: %s", exc.kind.value, expression, exc)
            return False
        log.debug("%r = %s", expression, self.state.result)
        return True

    # ── Salvaguardas ─────────────────────────────────────────────

    def finalize(self, value: float, int_mode: bool, op: str | None = None,
                 exact: int | None = None):
        """Valida ``value`` y, si pasa todas las comprobaciones, lo muestra.

        Las comprobaciones se aplican en orden y se detienen en el primer
        fallo; cualquier fallo detiene la sesión hasta borrar.

        Raises:
            GuardrailError: con el tipo OVERFLOW, UNDERFLOW o PRECISION_LIMIT.
        """
        state = self.state
        try:
            self._check_guardrails(value, int_mode, op, exact)
        except GuardrailError as exc:
            state.status = Status.HALTED
            state.error = exc.kind
            raise

        state.result = format_number(value, int_mode)
        state.last_value = value
        state.last_int_mode = int_mode

    def _check_guardrails(self, value: float, int_mode: bool, op: str | None,
                          exact: int | None):
        state = self.state
        previous = state.last_value

        check_float_limits(value)

        # Un ×/÷ que da exactamente 0.0 desde un valor no nulo es un
        # subdesbordamiento silencioso.
        if op in MULTIPLICATIVE and previous is not None and previous != 0.0 and value == 0.0:
            raise GuardrailError(ErrorKind.UNDERFLOW, f"{previous} {op} ... = 0.0")

        if op in MULTIPLICATIVE and previous is not None and state.trend is Trend.EXPECT_DECREASING:
            if abs(value) >= abs(previous) * (1.0 - self.TREND_REL_EPS):
                raise GuardrailError(
                    ErrorKind.PRECISION_LIMIT,
                    f"la magnitud no decrece: |{value}| >= |{previous}|",
                )

        if op == "÷":
            self._check_division_chain(value, previous)
        else:
            state.sequential_divisions = 0

        if int_mode:
            magnitude = abs(exact) if exact is not None else abs(value)
            if magnitude > self.MAX_EXACT_INT:
                raise GuardrailError(
                    ErrorKind.PRECISION_LIMIT,
                    f"entero fuera del rango exacto: {magnitude}",
                )

    def _check_division_chain(self, value: float, previous: float | None):
        state = self.state
        state.sequential_divisions += 1

        if value != 0.0 and abs(value) < self.EARLY_DIVISION_CUTOFF:
            raise GuardrailError(ErrorKind.UNDERFLOW, f"|{value}| bajo el corte de división")

        if previous is not None and previous != 0.0:
            change = abs(value - previous) / abs(previous)
            if value == previous or change < self.STALL_REL_EPS:
                raise GuardrailError(
                    ErrorKind.PRECISION_LIMIT,
                    f"la división ya no cambia el valor ({previous} → {value})",
                )

        if state.sequential_divisions > self.MAX_SEQUENTIAL_DIVISIONS:
            raise GuardrailError(
                ErrorKind.PRECISION_LIMIT,
                f"{state.sequential_divisions} divisiones seguidas",
            )
