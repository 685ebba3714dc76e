"""
Hand-rolled multipart/form-data decoding.

The whole body is parsed in memory, which is fine for one PDF plus a couple
of small form fields but not for large uploads.
"""
import enum
import re
import uuid
from dataclasses import dataclass
from typing import Iterable, List, Optional

from core.exceptions import MalformedBody, MissingBoundary

CRLF = b"\r\n"
HEADER_END = b"\r\n\r\n"

_NAME_RE = re.compile(r'\bname="([^"]+)"')
_FILENAME_RE = re.compile(r'\bfilename="([^"]+)"')


@dataclass(frozen=True)
class MultipartPart:
    name: str
    data: bytes
    filename: Optional[str] = None


class _State(enum.Enum):
    SEEKING_BOUNDARY = "seeking-boundary"
    READING_HEADERS = "reading-headers"
    READING_PAYLOAD = "reading-payload"
    DONE = "done"


def extract_boundary(content_type: Optional[str]) -> str:
    """Return the boundary token from a multipart content-type header."""
    if not content_type or "boundary=" not in content_type:
        raise MissingBoundary()
    boundary = content_type.split("boundary=", 1)[1].split(";", 1)[0].strip().strip('"')
    if not boundary:
        raise MissingBoundary()
    return boundary


def parse(body: bytes, boundary: str) -> List[MultipartPart]:
    """Split a multipart body into named parts, in stream order.

    Segments without a header/payload separator and parts without a
    ``name`` attribute are skipped.

    Raises:
        MissingBoundary: the boundary token is empty.
        MalformedBody: the opening or closing delimiter is not in the body.
    """
    if not boundary:
        raise MissingBoundary()

    delimiter = b"--" + boundary.encode("latin-1")
    closing = delimiter + b"--"
    separator = CRLF + delimiter + CRLF

    parts: List[MultipartPart] = []
    state = _State.SEEKING_BOUNDARY
    pos = 0
    stream_end = 0
    segment_end = 0
    payload_start = 0
    payload_end = 0
    headers = ""

    while state is not _State.DONE:
        if state is _State.SEEKING_BOUNDARY:
            start = body.find(delimiter)
            stream_end = body.rfind(closing)
            if start == -1 or stream_end == -1 or stream_end < start:
                raise MalformedBody()
            pos = start + len(delimiter)
            if body.startswith(CRLF, pos):
                pos += len(CRLF)
            state = _State.READING_HEADERS

        elif state is _State.READING_HEADERS:
            if pos >= stream_end:
                state = _State.DONE
                continue
            segment_end = body.find(separator, pos, stream_end)
            if segment_end == -1:
                segment_end = stream_end
            header_end = body.find(HEADER_END, pos, segment_end)
            if header_end == -1:
                pos = _next_segment(segment_end, stream_end, separator)
                continue
            headers = body[pos:header_end].decode("utf-8", errors="replace")
            payload_start = header_end + len(HEADER_END)
            payload_end = segment_end
            # The CRLF before the closing delimiter belongs to the delimiter
            if segment_end == stream_end and body[payload_start:stream_end].endswith(CRLF):
                payload_end = stream_end - len(CRLF)
            state = _State.READING_PAYLOAD

        elif state is _State.READING_PAYLOAD:
            name_match = _NAME_RE.search(headers)
            if name_match:
                filename_match = _FILENAME_RE.search(headers)
                parts.append(
                    MultipartPart(
                        name=name_match.group(1),
                        data=body[payload_start:payload_end],
                        filename=filename_match.group(1) if filename_match else None,
                    )
                )
            pos = _next_segment(segment_end, stream_end, separator)
            state = _State.READING_HEADERS

    return parts


def _next_segment(segment_end: int, stream_end: int, separator: bytes) -> int:
    if segment_end >= stream_end:
        return stream_end
    return segment_end + len(separator)


def encode(parts: Iterable[MultipartPart], boundary: Optional[str] = None) -> bytes:
    """Build a multipart/form-data body; the inverse of ``parse``."""
    boundary = boundary or uuid.uuid4().hex
    delimiter = b"--" + boundary.encode("latin-1")
    chunks = []
    for part in parts:
        disposition = f'form-data; name="{part.name}"'
        if part.filename is not None:
            disposition += f'; filename="{part.filename}"'
        chunks.append(delimiter + CRLF)
        chunks.append(f"Content-Disposition: {disposition}".encode("utf-8") + CRLF)
        if part.filename is not None:
            chunks.append(b"Content-Type: application/octet-stream" + CRLF)
        chunks.append(CRLF)
        chunks.append(part.data + CRLF)
    chunks.append(delimiter + b"--" + CRLF)
    return b"".join(chunks)
