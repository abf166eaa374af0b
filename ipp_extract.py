import logging
from typing import Iterable, Optional, Tuple, Union

from ipp_failures import Failure, StageFailure
from ipp_mime import DocumentPayload, extract
from ipp_scanner import AttributeRecord, scan


logger = logging.getLogger("ipp")


DEFAULT_ATTRIBUTE_NAME = "job-data"
DEFAULT_CONTENT_TYPE_PREFIX = "application/pdf"

PREVIEW_BYTES = 16


def _hex_preview(value: memoryview) -> str:
    preview = bytes(value[:PREVIEW_BYTES]).hex().upper()
    if len(value) > PREVIEW_BYTES:
        preview += "..."
    return preview


def locate(records: Iterable[AttributeRecord], target_name: str) -> Optional[AttributeRecord]:
    """Return the first record named exactly ``target_name``.

    Stops pulling from ``records`` at the first match.
    """
    for record in records:
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Attribute tag=0x%02x name=%s value_length=%d value=%s",
                record.tag,
                record.name,
                len(record.value),
                _hex_preview(record.value),
            )
        if record.name == target_name:
            return record
    return None


def _run_pipeline(
    buffer: Union[bytes, bytearray, memoryview],
    attribute_name: str,
    content_type_prefix: str,
) -> Tuple[Optional[DocumentPayload], Optional[StageFailure]]:
    records = scan(buffer)
    record = locate(records, attribute_name)
    if record is None:
        if records.failure is not None:
            return None, records.failure
        return None, StageFailure(
            Failure.ATTRIBUTE_NOT_FOUND,
            "locate",
            f"no attribute named {attribute_name!r} before offset {records.position}",
        )

    logger.debug("Found %s attribute (%d bytes)", attribute_name, len(record.value))
    outcome = extract(record.value, content_type_prefix)
    return outcome.payload, outcome.failure


def extract_payload(
    buffer: Union[bytes, bytearray, memoryview],
    attribute_name: str = DEFAULT_ATTRIBUTE_NAME,
    content_type_prefix: str = DEFAULT_CONTENT_TYPE_PREFIX,
) -> Tuple[Optional[DocumentPayload], Optional[StageFailure]]:
    """Run scan -> locate -> MIME extract and report which stage stopped it.

    Exactly one of the two returned values is set. Exceptions from any stage
    are folded into an ``Unexpected`` failure.
    """
    try:
        return _run_pipeline(buffer, attribute_name, content_type_prefix)
    except Exception as e:
        logger.exception("Document extraction raised")
        return None, StageFailure(Failure.UNEXPECTED, "extract", f"{type(e).__name__}: {e}")


def extract_document(
    buffer: Union[bytes, bytearray, memoryview],
    attribute_name: str = DEFAULT_ATTRIBUTE_NAME,
    content_type_prefix: str = DEFAULT_CONTENT_TYPE_PREFIX,
) -> bytes:
    """Return the embedded document bytes, or b"" when none could be extracted.

    Never raises for a stage failure; the reason is logged on the ``ipp``
    logger instead.
    """
    payload, failure = extract_payload(buffer, attribute_name, content_type_prefix)
    if payload is None:
        if failure is None:
            failure = StageFailure(Failure.UNEXPECTED, "extract", "no payload and no failure reported")
        logger.warning("Document not extracted: %s", failure.describe())
        return b""

    logger.info(
        "Document extracted: attribute=%s content_type=%s bytes=%d",
        attribute_name,
        payload.content_type or "",
        len(payload.data),
    )
    return payload.data
