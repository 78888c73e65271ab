"""Memoria del último "operador operando" para repetir con '='."""

import enum

from formula_evaluator import Evaluation


class Trend(enum.Enum):
    NONE = 0
    EXPECT_DECREASING = -1


class RepeatTracker:
    """Guarda el par final de la última expresión evaluada.

    Pulsar '=' sin entrada pendiente vuelve a aplicar ese par sobre el
    resultado actual (``5+3`` → ``8`` → ``11`` ...).
    """

    def __init__(self):
        self.operator: str | None = None
        self.operand: str | None = None

    @property
    def has_data(self) -> bool:
        return bool(self.operator) and bool(self.operand)

    def clear(self):
        self.operator = None
        self.operand = None

    def capture(self, evaluation: Evaluation) -> Trend:
        """Almacena el par de ``evaluation`` y devuelve la tendencia esperada.

        ÷ por un operando > 1 y × por un operando en (0, 1) reducen la
        magnitud en cada repetición.
        """
        if evaluation.operator is None or evaluation.operand is None:
            self.clear()
            return Trend.NONE

        self.operator = evaluation.operator
        self.operand = evaluation.operand
        return self.trend_for(self.operator, self.operand)

    @staticmethod
    def trend_for(operator: str, operand: str) -> Trend:
        try:
            value = float(operand)
        except ValueError:
            return Trend.NONE
        if value > 0:
            if operator == "÷" and value > 1.0:
                return Trend.EXPECT_DECREASING
            if operator == "×" and value < 1.0:
                return Trend.EXPECT_DECREASING
        return Trend.NONE

    def build_expression(self, left: str) -> str:
        return f"{left}{self.operator}{self.operand}"
