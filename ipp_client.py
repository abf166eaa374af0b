"""HTTP side of a document fetch: turn a printer URI into a POST and return the raw IPP response.

Nothing here parses IPP; the response bytes go straight to ipp_extract.
"""

import logging
from typing import Tuple
from urllib.parse import urlsplit, urlunsplit

import requests

from ipp_extract import DEFAULT_ATTRIBUTE_NAME, DEFAULT_CONTENT_TYPE_PREFIX, extract_document


logger = logging.getLogger("ipp")


IPP_DEFAULT_PORT = 631

RESPONSE_CHUNK_SIZE = 64 * 1024

_SCHEMES = {
    "ipp": "http",
    "ipps": "https",
    "http": "http",
    "https": "https",
}


class IppHttpError(Exception):
    def __init__(self, status_code: int, url: str) -> None:
        super().__init__(f"HTTP request to {url} failed: {status_code}")
        self.status_code = status_code
        self.url = url


def parse_ipp_uri(uri: str) -> Tuple[str, str, int, str]:
    """Return (http_scheme, host, port, path) for an ipp://host[:port]/path URI."""
    parts = urlsplit((uri or "").strip())
    scheme = _SCHEMES.get(parts.scheme.lower())
    if scheme is None:
        raise ValueError(f"Unsupported printer URI scheme: {uri!r}")
    if not parts.hostname:
        raise ValueError(f"Printer URI has no host: {uri!r}")

    port = parts.port or IPP_DEFAULT_PORT
    path = parts.path or "/"
    if parts.query:
        path += "?" + parts.query
    return scheme, parts.hostname, port, path


def _http_url(printer_uri: str) -> str:
    scheme, host, port, path = parse_ipp_uri(printer_uri)
    if ":" in host:
        host = f"[{host}]"
    path_only, _, query = path.partition("?")
    return urlunsplit((scheme, f"{host}:{port}", path_only, query, ""))


def fetch_ipp_response(printer_uri: str, request_body: bytes, timeout_seconds: int, max_bytes: int) -> bytes:
    url = _http_url(printer_uri)
    logger.info("POSTing IPP request to %s (%d bytes)", url, len(request_body))
    resp = requests.post(
        url,
        data=request_body,
        headers={"Content-Type": "application/ipp"},
        timeout=timeout_seconds,
        stream=True,
    )
    try:
        logger.info("IPP response: status=%s", resp.status_code)
        if resp.status_code != 200:
            raise IppHttpError(resp.status_code, url)

        length = resp.headers.get("Content-Length")
        if length is not None and length.isdigit() and int(length) > max_bytes:
            raise ValueError(f"IPP response exceeds limit (Content-Length={length} > {max_bytes} bytes)")

        body = bytearray()
        for chunk in resp.iter_content(chunk_size=RESPONSE_CHUNK_SIZE):
            if len(body) + len(chunk) > max_bytes:
                raise ValueError(f"IPP response exceeds limit ({max_bytes} bytes)")
            body += chunk
        logger.debug("Read %d bytes of IPP response", len(body))
        return bytes(body)
    finally:
        resp.close()


def fetch_document(
    printer_uri: str,
    request_body: bytes,
    attribute_name: str = DEFAULT_ATTRIBUTE_NAME,
    content_type_prefix: str = DEFAULT_CONTENT_TYPE_PREFIX,
    timeout_seconds: int = 30,
    max_bytes: int = 100 * 1024 * 1024,
) -> bytes:
    response = fetch_ipp_response(printer_uri, request_body, timeout_seconds, max_bytes)
    return extract_document(response, attribute_name, content_type_prefix)
