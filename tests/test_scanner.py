import pytest

from ipp_failures import Failure
from ipp_scanner import AttributeRecord, encode_attribute, encode_attributes, scan


def _records(buffer):
    return [(r.tag, r.name, bytes(r.value)) for r in scan(buffer)]


def test_scan_yields_name_and_value_slices_of_the_buffer():
    uri = encode_attribute(0x45, "printer-uri", b"ipp://printer.local/ipp/print")
    data = encode_attribute(0x30, "job-data", b"\x00\x01\xfe\xff")
    buffer = uri + data + b"\x03"

    records = list(scan(buffer))

    assert [(r.tag, r.name) for r in records] == [(0x45, "printer-uri"), (0x30, "job-data")]
    assert records[0].value == buffer[1 + 2 + 11 + 2 : len(uri)]
    assert records[1].value == buffer[len(uri) + 1 + 2 + 8 + 2 : len(uri) + len(data)]
    assert isinstance(records[1].value, memoryview)


def test_scan_empty_buffer_is_clean():
    records = scan(b"")
    assert list(records) == []
    assert records.failure is None
    assert records.finished


def test_scan_end_of_attributes_only_is_clean():
    records = scan(b"\x03")
    assert list(records) == []
    assert records.failure is None


def test_scan_stops_at_end_of_attributes_tag():
    buffer = encode_attributes([(0x44, "job-name", b"report")]) + b"\x45\xff\xff"
    records = scan(buffer)
    assert [(r.name, bytes(r.value)) for r in records] == [("job-name", b"report")]
    assert records.failure is None
    assert records.position == len(buffer) - 3


def test_scan_without_end_tag_ends_at_buffer_end():
    buffer = encode_attribute(0x44, "job-name", b"report")
    assert _records(buffer) == [(0x44, "job-name", b"report")]


@pytest.mark.parametrize("cut", range(1, 18))
def test_scan_truncated_buffer_reports_truncated(cut):
    full = encode_attribute(0x45, "job-data", b"hello")
    assert len(full) == 18

    records = scan(full[:cut])

    assert list(records) == []
    assert records.failure is not None
    assert records.failure.kind == Failure.TRUNCATED
    assert records.position <= cut


@pytest.mark.parametrize(
    "buffer, field",
    [
        (b"\x45", "name-length"),
        (b"\x45\x00", "name-length"),
        (b"\x45\x00\x08job", "name"),
        (b"\x45\x00\x08job-data\x00", "value-length"),
        (b"\x45\x00\x08job-data\x00\x05abc", "value"),
    ],
)
def test_scan_truncation_names_the_field(buffer, field):
    records = scan(buffer)
    list(records)
    assert records.failure.reason.startswith(field + " ")


def test_scan_emits_records_before_truncation_lazily():
    good = encode_attribute(0x44, "job-name", b"report")
    records = scan(good + b"\x30\x00\x08job-data\xff\xff")

    first = next(records)
    assert first.name == "job-name"
    assert records.failure is None

    assert list(records) == []
    assert records.failure.kind == Failure.TRUNCATED


def test_scan_tolerates_invalid_utf8_name():
    buffer = b"\x44\x00\x03ab\xff\x00\x01z" + encode_attribute(0x44, "next", b"ok") + b"\x03"
    records = _records(buffer)
    assert records == [(0x44, "ab\ufffd", b"z"), (0x44, "next", b"ok")]


def test_scan_is_not_restartable():
    buffer = encode_attributes([(0x44, "job-name", b"report")])
    records = scan(buffer)
    assert len(list(records)) == 1
    assert list(records) == []
    assert len(list(scan(buffer))) == 1


def test_scan_accepts_bytearray_and_empty_fields():
    buffer = bytearray(b"\x30\x00\x00\x00\x00\x03")
    assert list(scan(buffer)) == [AttributeRecord(0x30, "", memoryview(b""))]


def test_encode_attribute_rejects_oversized_value():
    with pytest.raises(ValueError):
        encode_attribute(0x30, "job-data", b"\x00" * 0x10000)
