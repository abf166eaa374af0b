import argparse
import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import fitz  # PyMuPDF
import requests

from ipp_client import IppHttpError, fetch_ipp_response
from ipp_config import load_config
from ipp_extract import extract_payload


logger = logging.getLogger("ipp")


def render_pdf_to_pngs(pdf_bytes: bytes, dpi: int) -> Tuple[int, Dict[int, bytes]]:
    doc = fitz.open(stream=pdf_bytes, filetype="pdf")
    total = doc.page_count
    pages: Dict[int, bytes] = {}
    for index in range(total):
        page = doc.load_page(index)
        pix = page.get_pixmap(dpi=dpi, alpha=False)
        pages[index + 1] = pix.tobytes("png")
    doc.close()
    return total, pages


def write_previews(pdf_bytes: bytes, render_dir: Path, dpi: int) -> int:
    if not pdf_bytes.startswith(b"%PDF"):
        logger.warning("Skipping preview: document is not a PDF (first bytes=%s)", pdf_bytes[:12])
        return 0
    total, pages = render_pdf_to_pngs(pdf_bytes, dpi=dpi)
    render_dir.mkdir(parents=True, exist_ok=True)
    for page_num, png_bytes in pages.items():
        (render_dir / f"page_{page_num:04d}.png").write_bytes(png_bytes)
    logger.info("Wrote %d page preview(s) to %s", total, render_dir.resolve())
    return total


def _read_response(args: argparse.Namespace, config: Dict) -> bytes:
    if args.response:
        return Path(args.response).read_bytes()
    request_body = Path(args.request).read_bytes()
    return fetch_ipp_response(
        args.printer_uri,
        request_body,
        timeout_seconds=config["IPP_TIMEOUT_SECONDS"],
        max_bytes=config["IPP_MAX_BYTES"],
    )


def main(argv: Optional[List[str]] = None) -> int:
    config = load_config()

    logging.basicConfig(
        level=getattr(logging, config["LOG_LEVEL"], logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    parser = argparse.ArgumentParser(description="Extract an embedded document from an IPP response")
    parser.add_argument("response", nargs="?", help="saved IPP response body")
    parser.add_argument("--printer-uri", default=config["IPP_PRINTER_URI"], help="ipp://host[:port]/path to POST to")
    parser.add_argument("--request", help="IPP request body to POST to --printer-uri")
    parser.add_argument("--attribute", default=config["IPP_TARGET_ATTRIBUTE"])
    parser.add_argument("--content-type", default=config["IPP_TARGET_CONTENT_TYPE"])
    parser.add_argument("--output", default="document.pdf")
    parser.add_argument("--render-dir", help="write one PNG per PDF page here")
    parser.add_argument("--dpi", type=int, default=config["IPP_RENDER_DPI"])
    args = parser.parse_args(argv)

    if not args.response and not (args.printer_uri and args.request):
        parser.error("give a response file, or --printer-uri with --request")

    try:
        raw = _read_response(args, config)
    except (IppHttpError, requests.RequestException, OSError, ValueError) as e:
        logger.error("Could not obtain IPP response: %s", e)
        print(f"Could not obtain IPP response: {e}")
        return 1

    payload, failure = extract_payload(raw, args.attribute, args.content_type)
    if payload is None:
        reason = failure.describe() if failure else "unknown"
        logger.warning("Document not extracted: %s", reason)
        print(f"No document extracted: {reason}")
        return 1

    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(payload.data)
    print(f"Wrote {len(payload.data)} bytes ({payload.content_type or 'unknown type'}) to {output}")

    if args.render_dir:
        try:
            write_previews(payload.data, Path(args.render_dir), args.dpi)
        except Exception:
            # The document is already on disk; a preview failure is not fatal.
            logger.exception("Render failed")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
