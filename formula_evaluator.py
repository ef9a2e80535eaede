"""Parseo y evaluación de expresiones para la calculadora científica.

La expresión se normaliza (espacios, glifos de la interfaz,
multiplicación implícita) y se divide en tokens. La evaluación parte
cada rango de tokens por la última aparición, fuera de paréntesis, del
operador de menor precedencia y evalúa ambos lados. Los valores
numéricos los produce un proveedor intercambiable: PythonMathProvider
trabaja con float y MPMathProvider (arbitrary_precision_engine) con
mpmath.

Precedencia, de menor a mayor, todas asociativas por la izquierda:

    +   -   *   /   %   ^

Cada nivel es estricto: a+b-c se agrupa como a+(b-c) y a/b%c como
a/(b%c).

Solo se mira el último '-' del rango. Si lo precede un operador o '('
es un signo y no hay resta en ese nivel: 5-3*-2 es (5-3)*(-2) y 2--3
no es válida. Un signo solo se admite pegado a un literal (-5, 2^-1).
"""

import logging
import math
import re
from enum import Enum
from typing import NamedTuple

from calculation_errors import (
    CalculationError,
    DivisionByZeroError,
    InvalidArgumentsError,
    InvalidExpressionError,
)
from combinatorics import combinations, factorial, permutations

logger = logging.getLogger(__name__)


class AngleMode(Enum):
    DEGREES = "deg"
    RADIANS = "rad"

    @classmethod
    def parse(cls, mode) -> "AngleMode":
        if isinstance(mode, cls):
            return mode
        try:
            return cls(mode)
        except ValueError:
            raise ValueError("El modo debe ser 'rad' o 'deg'") from None


# ── Tokens ───────────────────────────────────────────────────────

class TokenKind(Enum):
    NUMBER = "number"
    IDENTIFIER = "identifier"
    OPERATOR = "operator"
    LPAREN = "("
    RPAREN = ")"
    COMMA = ","


class Token(NamedTuple):
    kind: TokenKind
    text: str
    start: int

    @property
    def end(self) -> int:
        return self.start + len(self.text)


class FunctionName(Enum):
    SQRT = "sqrt"
    SIN = "sin"
    COS = "cos"
    TAN = "tan"
    ASIN = "asin"
    ACOS = "acos"
    ATAN = "atan"
    SINH = "sinh"
    COSH = "cosh"
    TANH = "tanh"
    LOG = "log"
    LN = "ln"
    EXP = "exp"
    ABS = "abs"
    FACTORIAL = "factorial"
    NPR = "nPr"
    NCR = "nCr"

    @property
    def arity(self) -> int:
        return 2 if self in (FunctionName.NPR, FunctionName.NCR) else 1

    @classmethod
    def lookup(cls, name: str):
        """Devuelve la función para un identificador, o None."""
        name = _FUNCTION_ALIASES.get(name, name)
        try:
            return cls(name)
        except ValueError:
            return None


_FUNCTION_ALIASES = {"fact": "factorial"}

CONSTANTS = ("pi", "e")

# Orden de partición, de menor a mayor precedencia.
SPLIT_ORDER = ("+", "-", "*", "/", "%", "^")

_TOKEN_RE = re.compile(
    r"""
    (?P<number>(?:\d+\.?\d*|\.\d+)(?:[eE][+\-]?\d+)?)
    |(?P<identifier>[A-Za-z_]\w*)
    |(?P<operator>[+\-*/%^])
    |(?P<lparen>\()
    |(?P<rparen>\))
    |(?P<comma>,)
    """,
    re.VERBOSE,
)

_GROUP_KINDS = {
    "number": TokenKind.NUMBER,
    "identifier": TokenKind.IDENTIFIER,
    "operator": TokenKind.OPERATOR,
    "lparen": TokenKind.LPAREN,
    "rparen": TokenKind.RPAREN,
    "comma": TokenKind.COMMA,
}

_GLYPHS = {
    "×": "*",
    "÷": "/",
    "−": "-",
    "π": "pi",
    "√(": "sqrt(",
}

_IMPLICIT_MULT_PATTERNS = [
    (re.compile(r"\)\("), ")*("),
    (re.compile(r"(\d)\("), r"\1*("),
    (re.compile(r"\)(\d)"), r")*\1"),
]


def preprocess(expression: str) -> str:
    """Quita espacios, traduce glifos e inserta la multiplicación implícita."""
    expr = re.sub(r"\s+", "", expression)
    for glyph, replacement in _GLYPHS.items():
        expr = expr.replace(glyph, replacement)
    for pattern, repl in _IMPLICIT_MULT_PATTERNS:
        expr = pattern.sub(repl, expr)
    return expr


def tokenize(expr: str) -> list:
    tokens = []
    pos = 0
    while pos < len(expr):
        match = _TOKEN_RE.match(expr, pos)
        if match is None:
            raise InvalidExpressionError(expr)
        kind = _GROUP_KINDS[match.lastgroup]
        tokens.append(Token(kind, match.group(), pos))
        pos = match.end()
    return tokens


# ── Proveedor float ──────────────────────────────────────────────

def _ieee(fn, x, overflow=math.inf):
    """Aplica fn devolviendo inf/NaN en lugar de lanzar excepciones."""
    try:
        return fn(x)
    except OverflowError:
        return overflow
    except ValueError:
        return math.nan


def _power(x: float, y: float) -> float:
    try:
        return math.pow(x, y)
    except OverflowError:
        odd_exponent = float(y).is_integer() and int(y) % 2 == 1
        return -math.inf if x < 0 and odd_exponent else math.inf
    except ValueError:
        if x == 0 and y < 0:
            return math.inf
        return math.nan


def _fmod(x: float, y: float) -> float:
    try:
        return math.fmod(x, y)
    except ValueError:
        return math.nan


class PythonMathProvider:
    """Aritmética en float con semántica IEEE (inf y NaN como errores)."""

    _TRIG = {
        FunctionName.SIN: math.sin,
        FunctionName.COS: math.cos,
        FunctionName.TAN: math.tan,
    }
    _INVERSE_TRIG = {
        FunctionName.ASIN: math.asin,
        FunctionName.ACOS: math.acos,
        FunctionName.ATAN: math.atan,
    }
    _PLAIN = {
        FunctionName.SQRT: math.sqrt,
        FunctionName.COSH: math.cosh,
        FunctionName.TANH: math.tanh,
        FunctionName.EXP: math.exp,
        FunctionName.ABS: abs,
    }
    _BINARY = {
        "+": lambda a, b: a + b,
        "-": lambda a, b: a - b,
        "*": lambda a, b: a * b,
        "/": lambda a, b: a / b,
        "%": _fmod,
        "^": _power,
    }

    def parse_number(self, text: str) -> float:
        return float(text)

    def constant(self, name: str) -> float:
        return math.pi if name == "pi" else math.e

    def binary(self, op: str, left: float, right: float) -> float:
        return self._BINARY[op](left, right)

    def call(self, function: FunctionName, args: list, angle_mode: AngleMode):
        if function is FunctionName.NPR:
            return permutations(*args)
        if function is FunctionName.NCR:
            return combinations(*args)
        return self.apply(function, args[0], angle_mode)

    def apply(self, function: FunctionName, x: float, angle_mode: AngleMode) -> float:
        degrees = angle_mode is AngleMode.DEGREES

        if function in self._TRIG:
            return _ieee(self._TRIG[function], math.radians(x) if degrees else x)

        if function in self._INVERSE_TRIG:
            result = _ieee(self._INVERSE_TRIG[function], x)
            return math.degrees(result) if degrees else result

        if function is FunctionName.FACTORIAL:
            return factorial(x)

        if function in (FunctionName.LOG, FunctionName.LN):
            if x == 0:
                return -math.inf
            return _ieee(math.log10 if function is FunctionName.LOG else math.log, x)

        if function is FunctionName.SINH:
            return _ieee(math.sinh, x, overflow=math.copysign(math.inf, x))

        return _ieee(self._PLAIN[function], x)


# ── Evaluación por partición ─────────────────────────────────────

class _Parser:
    """Estado de una sola evaluación; no se reutiliza entre llamadas.

    Los rangos [lo, hi) son índices de tokens. La profundidad de
    paréntesis se cuenta desde cero en cada rango.
    """

    def __init__(self, source: str, tokens: list, provider, angle_mode: AngleMode):
        self._source = source
        self._tokens = tokens
        self._provider = provider
        self._angle_mode = angle_mode

    def parse(self):
        return self._evaluate(0, len(self._tokens))

    def _text(self, lo: int, hi: int) -> str:
        if lo >= hi:
            return ""
        return self._source[self._tokens[lo].start:self._tokens[hi - 1].end]

    def _top_level(self, lo: int, hi: int, kind: TokenKind, text=None) -> list:
        """Posiciones de los tokens kind/text a profundidad cero."""
        positions = []
        depth = 0
        for i in range(lo, hi):
            token = self._tokens[i]
            if token.kind is TokenKind.LPAREN:
                depth += 1
            elif token.kind is TokenKind.RPAREN:
                depth -= 1
            elif depth == 0 and token.kind is kind and (text is None or token.text == text):
                positions.append(i)
        return positions

    def _evaluate(self, lo: int, hi: int):
        for op in SPLIT_ORDER:
            positions = self._top_level(lo, hi, TokenKind.OPERATOR, op)
            if not positions:
                continue
            pos = positions[-1]
            if op == "-" and not self._is_subtraction(lo, pos):
                continue
            left = self._evaluate(lo, pos)
            right = self._evaluate(pos + 1, hi)
            return self._apply_binary(op, left, right)

        return self._evaluate_term(lo, hi)

    def _is_subtraction(self, lo: int, pos: int) -> bool:
        if pos == lo:
            return False
        previous = self._tokens[pos - 1].kind
        return previous not in (TokenKind.OPERATOR, TokenKind.LPAREN)

    def _evaluate_term(self, lo: int, hi: int):
        tokens = self._tokens
        count = hi - lo
        first = tokens[lo] if count else None

        if (
            count >= 3
            and first.kind is TokenKind.IDENTIFIER
            and tokens[lo + 1].kind is TokenKind.LPAREN
            and tokens[hi - 1].kind is TokenKind.RPAREN
        ):
            function = FunctionName.lookup(first.text)
            if function is not None:
                return self._call(function, lo + 2, hi - 1)

        if (
            count >= 2
            and first.kind is TokenKind.LPAREN
            and tokens[hi - 1].kind is TokenKind.RPAREN
            and self._wraps(lo, hi)
        ):
            return self._evaluate(lo + 1, hi - 1)

        if count == 1 and first.kind is TokenKind.IDENTIFIER and first.text in CONSTANTS:
            return self._provider.constant(first.text)

        if count == 1 and first.kind is TokenKind.NUMBER:
            return self._provider.parse_number(first.text)

        if (
            count == 2
            and first.kind is TokenKind.OPERATOR
            and first.text == "-"
            and tokens[lo + 1].kind is TokenKind.NUMBER
        ):
            return self._provider.parse_number(self._text(lo, hi))

        raise InvalidExpressionError(self._text(lo, hi))

    def _wraps(self, lo: int, hi: int) -> bool:
        """True si el '(' inicial cierra en el último token del rango."""
        depth = 0
        for i in range(lo, hi):
            kind = self._tokens[i].kind
            if kind is TokenKind.LPAREN:
                depth += 1
            elif kind is TokenKind.RPAREN:
                depth -= 1
            if depth == 0 and i < hi - 1:
                return False
        return True

    def _call(self, function: FunctionName, lo: int, hi: int):
        if function.arity == 2:
            commas = self._top_level(lo, hi, TokenKind.COMMA)
            if not commas:
                name = function.value
                raise InvalidArgumentsError(
                    f"{name} requires two arguments: {name}(n,r)"
                )
            comma = commas[0]
            args = [self._evaluate(lo, comma), self._evaluate(comma + 1, hi)]
        else:
            args = [self._evaluate(lo, hi)]

        return self._provider.call(function, args, self._angle_mode)

    def _apply_binary(self, op: str, left, right):
        if op == "/" and right == 0:
            raise DivisionByZeroError()
        return self._provider.binary(op, left, right)


class FormulaEvaluator:
    """Transforma expresiones de UI y evalúa su valor numérico."""

    def __init__(self, provider=None):
        self._provider = provider if provider is not None else PythonMathProvider()

    def evaluate(self, expression: str, angle_mode=AngleMode.DEGREES):
        """Evalúa la expresión en el modo angular indicado.

        Raises:
            InvalidExpressionError: token final o paréntesis no reconocibles,
                también si el anidamiento agota la pila.
            DivisionByZeroError: divisor cero en un nodo '/'.
            InvalidArgumentsError: argumentos inválidos para nPr/nCr.
            NTooLargeError: n > 170 en nPr/nCr.
        """
        mode = AngleMode.parse(angle_mode)
        processed = preprocess(expression)
        try:
            tokens = tokenize(processed)
            try:
                value = _Parser(processed, tokens, self._provider, mode).parse()
            except RecursionError as exc:
                raise InvalidExpressionError(processed) from exc
        except CalculationError as exc:
            logger.debug("Expresión rechazada %r: %s", expression, exc)
            raise

        logger.debug("%r (%s) = %r", expression, mode.value, value)
        return value


_DEFAULT_EVALUATOR = FormulaEvaluator()


def evaluate(expression: str, angle_mode=AngleMode.DEGREES) -> float:
    """Atajo sobre un FormulaEvaluator con el proveedor float."""
    return _DEFAULT_EVALUATOR.evaluate(expression, angle_mode)
