import os
from typing import Any, Dict

from dotenv import load_dotenv

from ipp_extract import DEFAULT_ATTRIBUTE_NAME, DEFAULT_CONTENT_TYPE_PREFIX


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return int(value)


def _env_str(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value


def load_config(dotenv: bool = True) -> Dict[str, Any]:
    if dotenv:
        load_dotenv()

    return {
        "IPP_TARGET_ATTRIBUTE": _env_str("IPP_TARGET_ATTRIBUTE", DEFAULT_ATTRIBUTE_NAME),
        "IPP_TARGET_CONTENT_TYPE": _env_str("IPP_TARGET_CONTENT_TYPE", DEFAULT_CONTENT_TYPE_PREFIX),
        "IPP_PRINTER_URI": _env_str("IPP_PRINTER_URI", ""),
        "IPP_TIMEOUT_SECONDS": _env_int("IPP_TIMEOUT_SECONDS", 30),
        "IPP_MAX_BYTES": _env_int("IPP_MAX_BYTES", 100 * 1024 * 1024),
        "IPP_RENDER_DPI": _env_int("IPP_RENDER_DPI", 150),
        "LOG_LEVEL": _env_str("LOG_LEVEL", "INFO").upper(),
    }
