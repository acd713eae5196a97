import io  # RawIOBase check in write_all
import logging  # module-level logger

_logger = logging.getLogger(__name__)

I16_MIN, I16_MAX = -(1 << 15), (1 << 15) - 1  # signed 16-bit header field range
SIGN_POSITIVE, SIGN_NEGATIVE = 1, 2  # numerator sign byte values


class QpFormatError(ValueError):  # Raised on malformed, truncated or unencodable Qp records.
    pass


def encode_integer(x: int) -> bytes:  # Sign-magnitude, base-256, least-significant digit first.
    x = int(x)
    if x == 0:
        return b"\x00"
    out = bytearray([SIGN_POSITIVE if x > 0 else SIGN_NEGATIVE])
    n = abs(x)
    while n:
        out.append(n & 0xFF)
        n >>= 8
    return bytes(out)


def decode_integer(buf) -> int:  # Inverse of encode_integer; empty buffer decodes to zero.
    buf = bytes(buf)
    if not buf:
        return 0
    res = int.from_bytes(buf[1:], "little")
    return -res if buf[0] == SIGN_NEGATIVE else res


def i16_le(x: int) -> bytes:  # Pack a signed 16-bit header field.
    try:
        return int(x).to_bytes(2, "little", signed=True)
    except OverflowError:
        _logger.debug("i16 field out of range: %s", x)
        raise QpFormatError(f"value {x} does not fit a signed 16-bit field") from None


class StreamReader:  # Exact-length little-endian reader over a binary file-like source.
    def __init__(self, source):
        self.source = source
        self.n_read = 0

    def read_exact(self, n: int) -> bytes:  # Loop over short reads until n bytes or EOF.
        n = int(n)
        if n < 0:
            raise QpFormatError("negative read length")
        chunks = []
        got = 0
        while got < n:
            chunk = self.source.read(n - got)
            if not chunk:
                _logger.debug("short read: wanted %s bytes, got %s (offset %s)", n, got, self.n_read)
                raise QpFormatError("unexpected EOF")
            chunks.append(chunk)
            got += len(chunk)
        self.n_read += n
        return b"".join(chunks)

    def i16(self) -> int:
        return int.from_bytes(self.read_exact(2), "little", signed=True)

    def u64(self) -> int:
        return int.from_bytes(self.read_exact(8), "little")


def write_all(sink, data) -> None:  # Write every byte, retrying partial writes; never drop bytes silently.
    view = memoryview(bytes(data))
    written = 0
    while view:
        n = sink.write(view)
        if n is None:
            # raw streams return None when nothing could be written (non-blocking)
            if isinstance(sink, io.RawIOBase) or written:
                _logger.debug("sink wrote nothing after %s of %s bytes", written, written + len(view))
                raise BlockingIOError(f"sink accepted only {written} of {written + len(view)} bytes")
            return  # file-likes without a byte count wrote everything or raised
        if n <= 0:
            raise OSError("sink refused to accept bytes")
        written += n
        view = view[n:]
