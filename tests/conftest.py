import pytest

from ipp_scanner import encode_attributes


VT_URI = 0x45
VT_OCTET_STRING = 0x30

BOUNDARY = "----=_Part_0_1234.5678"


def _multipart(parts, boundary=BOUNDARY):
    out = bytearray()
    for headers, body in parts:
        out += b"--" + boundary.encode("ascii") + b"\r\n"
        for name, value in headers:
            out += f"{name}: {value}\r\n".encode("ascii")
        out += b"\r\n" + body + b"\r\n"
    out += b"--" + boundary.encode("ascii") + b"--\r\n"
    return bytes(out)


@pytest.fixture
def multipart():
    """Build a multipart body from [(headers, body), ...]; headers are (name, value) pairs."""
    return _multipart


@pytest.fixture
def ipp_response():
    """Build an attribute stream ending in end-of-attributes from (name, value) pairs."""

    def _build(*attributes, tag=VT_OCTET_STRING):
        return encode_attributes([(tag, name, value) for name, value in attributes])

    return _build
