import io  # in-memory byte streams for to_bytes/from_bytes
import logging  # module-level logger
from dataclasses import dataclass  # lightweight struct-like containers

from qp_serialize import (
    I16_MAX,
    I16_MIN,
    QpFormatError,
    StreamReader,
    decode_integer,
    encode_integer,
    i16_le,
    write_all,
)

_logger = logging.getLogger(__name__)

VALUATION_MIN, VALUATION_MAX = I16_MIN, I16_MAX  # valuations are signed 16-bit
PRIME_MAX = (1 << 31) - 1  # primes must fit a signed 32-bit integer
INT_PART_DIGITS = 40  # p-adic digits kept by int_part (result is reduced mod p^40)
U64_MASK = (1 << 64) - 1  # low-64-bit mask for int_part


class QpNotIntegralError(ArithmeticError):  # int_part requested for a value with negative valuation.
    pass


class QpInverseNotImplemented(NotImplementedError):  # Multiplicative inverse is not supported.
    pass


def _as_int(x):  # Reject non-integer operands instead of truncating them.
    if isinstance(x, int) and not isinstance(x, bool):
        return x
    raise TypeError(f"expected int, got {type(x).__name__}")


def _check_valuation(v):  # Keep valuation arithmetic inside the signed 16-bit range.
    if not VALUATION_MIN <= v <= VALUATION_MAX:
        raise OverflowError(f"valuation {v} out of signed 16-bit range")
    return v


@dataclass
class Qp:  # The number numerator * p^valuation; canonical iff p does not divide a nonzero numerator.
    numerator: int = 0
    valuation: int = 0

    def copy(self):  # Independent value with the same fields.
        return Qp(self.numerator, self.valuation)


@dataclass(frozen=True)
class QpOp:  # Q_p operations for one fixed prime; values are assumed to share it (not checked).
    p: int

    def __post_init__(self):
        p = self.p
        if not isinstance(p, int) or isinstance(p, bool):
            raise TypeError("prime must be an int")
        if p < 2 or p > PRIME_MAX:
            raise ValueError("prime must satisfy 2 <= p < 2^31")

    def prime(self) -> int:
        return self.p

    def power_p(self, i: int) -> int:  # p^i as an unbounded integer.
        i = int(i)
        if i < 0:
            raise ValueError("exponent must be non-negative")
        res = 1
        for _ in range(i):
            res *= self.p
        return res

    def power_p_int(self, i: int) -> int:  # p^i in signed 32-bit arithmetic; wraps silently on overflow.
        i = int(i)
        if i < 0:
            raise ValueError("exponent must be non-negative")
        res = 1
        for _ in range(i):
            res = (res * self.p) & 0xFFFFFFFF
        return res - (1 << 32) if res >= 1 << 31 else res

    def simplify(self, x: Qp) -> Qp:  # Rewrite x in place into canonical form; returns x.
        if x.numerator == 0:
            x.valuation = 0
            return x
        p = self.p
        n, v = x.numerator, x.valuation
        q, r = divmod(n, p)
        while r == 0:
            n, v = q, v + 1
            q, r = divmod(n, p)
        x.numerator, x.valuation = n, _check_valuation(v)
        return x

    def zero(self) -> Qp:
        return Qp(0, 0)

    def unit(self, n: int) -> Qp:  # Integer n as a canonical value.
        return self.simplify(Qp(_as_int(n), 0))

    def construct(self, numerator: int, valuation: int) -> Qp:  # Raw constructor: no normalization, may be non-canonical.
        return Qp(_as_int(numerator), _check_valuation(_as_int(valuation)))

    def is_zero(self, x: Qp) -> bool:  # Ignores valuation.
        return x.numerator == 0

    def invertible(self, x: Qp) -> bool:  # Every nonzero element of Q_p is a unit.
        return not self.is_zero(x)

    def inverse(self, x: Qp) -> Qp:  # Not supported; check invertible() and plan around it.
        _logger.debug("inverse requested for %s", self.output(x))
        raise QpInverseNotImplemented("Qp inverse is not implemented")

    def minus(self, x: Qp) -> Qp:
        return Qp(-x.numerator, x.valuation)

    def add(self, x: Qp, y: Qp) -> Qp:  # Align onto the smaller valuation; only equal valuations can cancel a factor of p.
        # a zero operand has no meaningful valuation to align onto
        if x.numerator == 0:
            return y.copy()
        if y.numerator == 0:
            return x.copy()
        if x.valuation < y.valuation:
            d = y.valuation - x.valuation
            return Qp(x.numerator + y.numerator * self.power_p(d), x.valuation)
        if x.valuation > y.valuation:
            d = x.valuation - y.valuation
            return Qp(y.numerator + x.numerator * self.power_p(d), y.valuation)
        return self.simplify(Qp(x.numerator + y.numerator, x.valuation))

    def multiply(self, x: Qp, y: Qp) -> Qp:  # Product; a zero factor yields canonical zero.
        n = x.numerator * y.numerator
        if n == 0:
            return self.zero()
        return Qp(n, _check_valuation(x.valuation + y.valuation))

    def int_part(self, x: Qp) -> int:  # Low 64 bits of x mod p^INT_PART_DIGITS; lossy, for display or hashing.
        if x.valuation < 0:
            _logger.debug("int_part of non-integral value %s", self.output(x))
            raise QpNotIntegralError(f"not integral: {self.output(x)}")
        modulus = self.p**INT_PART_DIGITS
        ip = (x.numerator * self.power_p(x.valuation)) % modulus  # Python % is already non-negative
        return ip & U64_MASK

    def output(self, x: Qp) -> str:
        return f"{x.numerator}({x.valuation})"

    def output_integer(self, x: Qp) -> str:
        return str(self.int_part(x))

    def save(self, x: Qp, writer) -> None:  # valuation i16 LE | length i16 LE | numerator bytes.
        num = encode_integer(x.numerator)
        if len(num) > I16_MAX:
            _logger.debug("numerator encoding too long: %s bytes", len(num))
            raise QpFormatError("numerator too long")
        write_all(writer, i16_le(x.valuation) + i16_le(len(num)) + num)

    def load(self, reader) -> Qp:  # Read one record written by save(); no normalization.
        r = reader if isinstance(reader, StreamReader) else StreamReader(reader)
        valuation = r.i16()
        n = r.i16()
        if n < 0:
            _logger.debug("negative numerator length %s", n)
            raise QpFormatError("invalid numerator length")
        return Qp(decode_integer(r.read_exact(n)), valuation)

    def save_as_integer(self, x: Qp, writer) -> None:  # int_part(x) as u64 LE.
        write_all(writer, self.int_part(x).to_bytes(8, "little"))

    def load_as_integer(self, reader) -> int:  # Read a u64 written by save_as_integer().
        r = reader if isinstance(reader, StreamReader) else StreamReader(reader)
        return r.u64()

    def to_bytes(self, x: Qp) -> bytes:
        buf = io.BytesIO()
        self.save(x, buf)
        return buf.getvalue()

    def from_bytes(self, data) -> Qp:  # Exactly one record; trailing bytes are an error.
        buf = io.BytesIO(bytes(data))
        x = self.load(buf)
        if buf.read(1):
            raise QpFormatError("trailing bytes after Qp record")
        return x


Q3_OP = QpOp(3)  # Shared context for p = 3.
