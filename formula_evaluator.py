"""Parseo y evaluación de expresiones aritméticas de la calculadora."""

import math
import re
from dataclasses import dataclass


OPERATORS = ("+", "-", "×", "÷")
MULTIPLICATIVE = ("×", "÷")


class ParseError(ValueError):
    """La expresión no se puede interpretar."""


@dataclass(frozen=True)
class Evaluation:
    """Resultado de evaluar una expresión.

    ``operator`` y ``operand`` son el último par "operador operando" de la
    expresión (None si no hay operador binario). ``exact`` es el resultado
    entero exacto cuando la expresión solo tiene enteros con +, - y ×.
    """

    value: float
    operator: str | None = None
    operand: str | None = None
    exact: int | None = None


def is_pure_integer_expression(expression: str) -> bool:
    """True si la expresión es una cadena de enteros con +, - y ×."""
    if not expression:
        return False
    if "." in expression or "÷" in expression:
        return False
    return re.fullmatch(r"[0-9+\-×]+", expression) is not None


def ieee_divide(dividend: float, divisor: float) -> float:
    """División en coma flotante que devuelve inf/NaN en lugar de lanzar."""
    if divisor != 0:
        return dividend / divisor
    if dividend == 0 or math.isnan(dividend):
        return math.nan
    return math.copysign(math.inf, dividend) * math.copysign(1.0, divisor)


class FormulaEvaluator:
    """Evalúa expresiones infijas con los cuatro operadores básicos.

    La multiplicación y la división tienen prioridad sobre la suma y la
    resta; operadores de igual prioridad asocian por la izquierda.
    """

    _ALLOWED_CHARS = re.compile(r"^[\d\s+\-*/.eE×÷−]*$")
    _TOKEN_RE = re.compile(
        r"(?P<number>(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+\-]?\d+)?)|(?P<op>[+\-×÷])"
    )
    # Más dígitos que esto ya desborda un double; no se calcula el exacto.
    _EXACT_DIGIT_LIMIT = 320

    def evaluate(self, expression: str) -> Evaluation:
        """Evalúa la expresión.

        Raises:
            ParseError: expresión vacía, con caracteres inválidos, con
                operadores consecutivos o terminada en operador.
        """
        if not expression or not expression.strip():
            raise ParseError("Expresión vacía")

        self._validate_raw_expression(expression)
        processed = self._preprocess(expression)
        operands, operators = self._split_terms(self._tokenize(processed))

        value = self._reduce([float(text) for text in operands], operators, ieee_divide)

        exact = None
        if self._is_exact_candidate(operands, operators):
            exact = self._reduce([int(text) for text in operands], operators, None)

        if operators:
            return Evaluation(value, operators[-1], operands[-1], exact)
        return Evaluation(value, exact=exact)

    def _validate_raw_expression(self, expression: str):
        if not self._ALLOWED_CHARS.fullmatch(expression):
            raise ParseError("Expresión contiene caracteres inválidos")

    @staticmethod
    def _preprocess(expr: str) -> str:
        expr = re.sub(r"\s+", "", expr)
        expr = expr.replace("*", "×")
        expr = expr.replace("/", "÷")
        expr = expr.replace("−", "-")
        return expr

    def _tokenize(self, expr: str) -> list[tuple[str, str]]:
        tokens = []
        pos = 0
        while pos < len(expr):
            match = self._TOKEN_RE.match(expr, pos)
            if match is None:
                raise ParseError(f"Símbolo inesperado en la posición {pos}: {expr[pos]!r}")
            kind = match.lastgroup
            tokens.append((kind, match.group(kind)))
            pos = match.end()
        return tokens

    @staticmethod
    def _split_terms(tokens: list[tuple[str, str]]) -> tuple[list[str], list[str]]:
        """Separa operandos y operadores validando la alternancia."""
        sign = ""
        if tokens and tokens[0][0] == "op" and tokens[0][1] in "+-":
            sign = tokens[0][1]
            tokens = tokens[1:]

        if not tokens:
            raise ParseError("Error de sintaxis")

        operands: list[str] = []
        operators: list[str] = []
        for index, (kind, text) in enumerate(tokens):
            expected = "number" if index % 2 == 0 else "op"
            if kind != expected:
                raise ParseError("Error de sintaxis")
            if kind == "number":
                operands.append(text)
            else:
                operators.append(text)

        if len(operands) == len(operators):
            raise ParseError("La expresión termina en un operador")

        operands[0] = sign + operands[0]
        return operands, operators

    def _is_exact_candidate(self, operands: list[str], operators: list[str]) -> bool:
        if "÷" in operators:
            return False
        return all(
            re.fullmatch(r"[+\-]?\d+", text) and len(text) <= self._EXACT_DIGIT_LIMIT
            for text in operands
        )

    @staticmethod
    def _reduce(values: list, operators: list[str], divide):
        """Aplica primero × y ÷, luego + y -, de izquierda a derecha."""
        terms = [values[0]]
        additive = []
        for op, rhs in zip(operators, values[1:]):
            if op == "×":
                terms[-1] = terms[-1] * rhs
            elif op == "÷":
                terms[-1] = divide(terms[-1], rhs)
            else:
                additive.append(op)
                terms.append(rhs)

        total = terms[0]
        for op, term in zip(additive, terms[1:]):
            total = total + term if op == "+" else total - term
        return total
