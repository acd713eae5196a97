#!/usr/bin/env python3
"""Command-line front end for displaying, combining and (de)serializing Qp values."""
import argparse
import logging
import os
import sys

from qp import QpNotIntegralError, QpOp
from qp_serialize import QpFormatError

DEFAULT_PRIME = 3
PRIME_ENV = "QP_PRIME"  # overrides DEFAULT_PRIME when --prime is not given

_logger = logging.getLogger("qp_cli")


def _default_prime() -> int:
    env = os.environ.get(PRIME_ENV)
    return int(env) if env else DEFAULT_PRIME


def _describe(op: QpOp, x) -> str:  # output(), plus output_integer() when the value is integral.
    if x.valuation < 0:
        return op.output(x)
    return f"{op.output(x)} int={op.output_integer(x)}"


def _cmd_show(op, args) -> str:
    if args.valuation is None:
        return _describe(op, op.unit(args.numerator))
    return _describe(op, op.simplify(op.construct(args.numerator, args.valuation)))


def _cmd_add(op, args) -> str:
    return op.output(op.add(op.unit(args.a), op.unit(args.b)))


def _cmd_mul(op, args) -> str:
    return op.output(op.multiply(op.unit(args.a), op.unit(args.b)))


def _cmd_encode(op, args) -> str:
    return op.to_bytes(op.construct(args.numerator, args.valuation)).hex()


def _cmd_decode(op, args) -> str:
    try:
        data = bytes.fromhex(args.hex)
    except ValueError as exc:
        raise QpFormatError(f"invalid hex: {exc}") from None
    return op.output(op.from_bytes(data))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Exact p-adic arithmetic and Qp record codec.")
    parser.add_argument(
        "--prime",
        type=int,
        default=None,
        help=f"Prime p (default: ${PRIME_ENV} or {DEFAULT_PRIME}).",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("show", help="Normalize a value and print it.")
    p.add_argument("numerator", type=int)
    p.add_argument("valuation", type=int, nargs="?")
    p.set_defaults(func=_cmd_show)

    for name, func, text in (("add", _cmd_add, "Add two integers in Q_p."), ("mul", _cmd_mul, "Multiply two integers in Q_p.")):
        p = sub.add_parser(name, help=text)
        p.add_argument("a", type=int)
        p.add_argument("b", type=int)
        p.set_defaults(func=func)

    p = sub.add_parser("encode", help="Print the hex Qp record of numerator * p^valuation (no normalization).")
    p.add_argument("numerator", type=int)
    p.add_argument("valuation", type=int)
    p.set_defaults(func=_cmd_encode)

    p = sub.add_parser("decode", help="Decode a hex Qp record.")
    p.add_argument("hex")
    p.set_defaults(func=_cmd_decode)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        op = QpOp(args.prime if args.prime is not None else _default_prime())
        print(args.func(op, args))
    except (QpFormatError, QpNotIntegralError, OverflowError, ValueError) as exc:
        _logger.debug("command %s failed", args.command, exc_info=True)
        print(f"qp: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
