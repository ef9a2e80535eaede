"""Punto de entrada de la calculadora científica (línea de comandos)."""

import argparse
import logging
import sys

from calculation_errors import CalculationError
from calculator_engine import ERROR_PREFIX, CalculatorEngine
from number_formatter import DisplayFormat


USE_ARBITRARY_PRECISION = False
AP_INITIAL_DIGITS = 120
AP_PRECISION_STEP = 120
PROMPT = "calc> "


def build_engine(args):
    if args.precise or USE_ARBITRARY_PRECISION:
        from arbitrary_precision_engine import ArbitraryPrecisionCalculatorEngine

        return ArbitraryPrecisionCalculatorEngine(
            initial_digits=args.digits,
            precision_step=AP_PRECISION_STEP,
            angle_mode=args.angle_mode,
        )
    return CalculatorEngine(
        angle_mode=args.angle_mode,
        display_format=args.format or DisplayFormat.REGULAR,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="calculadora",
        description="Evalúa expresiones de la calculadora científica.",
    )
    parser.add_argument("expression", nargs="*", help="Expresión a evaluar (sin ella, modo interactivo)")
    angle = parser.add_mutually_exclusive_group()
    angle.add_argument("--deg", dest="angle_mode", action="store_const", const="deg", help="Ángulos en grados (por defecto)")
    angle.add_argument("--rad", dest="angle_mode", action="store_const", const="rad", help="Ángulos en radianes")
    parser.set_defaults(angle_mode="deg")
    parser.add_argument(
        "--format",
        default=None,
        choices=[style.value for style in DisplayFormat],
        help="Formato de pantalla (por defecto regular; no aplica con --precise)",
    )
    parser.add_argument("--precise", action="store_true", help="Usa el motor de precisión arbitraria (mpmath)")
    parser.add_argument("--digits", type=int, default=AP_INITIAL_DIGITS, help="Dígitos iniciales con --precise")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Nivel de logging",
    )
    return parser


def run_once(engine, expression: str) -> int:
    try:
        print(engine.evaluate(expression))
    except CalculationError as exc:
        print(ERROR_PREFIX + str(exc), file=sys.stderr)
        return 1
    return 0


def repl(engine) -> int:
    while True:
        try:
            line = input(PROMPT)
        except EOFError:
            print()
            return 0

        line = line.strip()
        if not line:
            continue
        if line in ("quit", "exit"):
            return 0
        if line == "more" and hasattr(engine, "request_more_precision"):
            try:
                print(engine.request_more_precision())
            except ValueError as exc:
                print(ERROR_PREFIX + str(exc))
            continue

        try:
            print(engine.evaluate(line))
        except CalculationError as exc:
            print(ERROR_PREFIX + str(exc))


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if (args.precise or USE_ARBITRARY_PRECISION) and args.format is not None:
        parser.error("--format no se puede combinar con --precise")
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )
    engine = build_engine(args)

    if args.expression:
        return run_once(engine, " ".join(args.expression))
    return repl(engine)


if __name__ == "__main__":
    sys.exit(main())
