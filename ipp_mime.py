"""Pull a typed body part out of a MIME multipart attribute value.

Some print services return the document as one part of a ``multipart/mixed``
container, next to metadata parts. The value carries no Content-Type header
of its own, so the boundary is taken from the framing: the first line that
starts with ``--`` is the opening delimiter.
"""

from email import policy
from email.parser import BytesParser
from typing import NamedTuple, Optional, Union

from ipp_failures import Failure, StageFailure


DEFAULT_PART_CONTENT_TYPE = "text/plain"

# RFC 2046 limits boundaries to 70 characters
MAX_BOUNDARY_LENGTH = 70


class DocumentPayload(NamedTuple):
    data: bytes
    content_type: Optional[str] = None


class MimeOutcome(NamedTuple):
    payload: Optional[DocumentPayload]
    failure: Optional[StageFailure] = None


def _failure(kind: Failure, reason: str) -> MimeOutcome:
    return MimeOutcome(None, StageFailure(kind, "mime", reason))


def find_boundary(data: bytes) -> Optional[str]:
    """Return the boundary of the first ``--`` delimiter line, or None."""
    for raw_line in data.splitlines():
        line = raw_line.rstrip()
        if not line.startswith(b"--") or len(line) <= 2:
            continue
        boundary = line[2:]
        if len(boundary) > MAX_BOUNDARY_LENGTH or b'"' in boundary:
            return None
        try:
            return boundary.decode("ascii")
        except UnicodeDecodeError:
            return None
    return None


def _declared_content_type(part) -> str:
    # get() would hand back the header re-rendered by the policy
    for name, value in part.raw_items():
        if name.lower() == "content-type":
            return value.replace("\r\n", "").replace("\n", "").strip()
    return DEFAULT_PART_CONTENT_TYPE


def extract(value: Union[bytes, bytearray, memoryview], content_type_prefix: str) -> MimeOutcome:
    data = bytes(value)
    boundary = find_boundary(data)
    if boundary is None:
        return _failure(Failure.MIME_PARSE_ERROR, f"no multipart delimiter line in {len(data)} bytes")

    header = f'Content-Type: multipart/mixed; boundary="{boundary}"\r\n\r\n'.encode("ascii")
    message = BytesParser(policy=policy.default).parsebytes(header + data)
    parts = message.get_payload() if message.is_multipart() else None
    if not parts:
        return _failure(Failure.MIME_PARSE_ERROR, f"no body parts found for boundary {boundary!r}")

    wanted = content_type_prefix.lower()
    declared_types = []
    for part in parts:
        content_type = _declared_content_type(part)
        declared_types.append(content_type)
        if not content_type.lower().startswith(wanted):
            continue
        body = part.get_payload(decode=True)
        return MimeOutcome(DocumentPayload(body or b"", content_type))

    return _failure(
        Failure.CONTENT_TYPE_NOT_FOUND,
        f"no part matching {content_type_prefix!r} among {declared_types}",
    )
