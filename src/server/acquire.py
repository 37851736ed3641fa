# src/server/acquire.py

from __future__ import annotations

import io
import logging
from pathlib import PurePath
from typing import Callable, Optional

from .errors import PdfTextUnavailable, TextAcquisitionError, UnsupportedFileType

logger = logging.getLogger(__name__)

IMAGE_EXTS = {".png", ".jpg", ".jpeg", ".bmp", ".gif", ".tif", ".tiff", ".webp"}
TEXT_EXTS = {".txt", ".md"}

OcrFn = Callable[[bytes], str]


def detect_kind(filename: str, content_type: Optional[str]) -> str:
    """
    Decide how text will be acquired from an upload: "image" (OCR) or "text".

    Raises PdfTextUnavailable for PDFs and UnsupportedFileType for anything else.
    """
    ctype = (content_type or "").lower().split(";")[0].strip()
    ext = PurePath(filename or "").suffix.lower()

    if ctype == "application/pdf" or ext == ".pdf":
        raise PdfTextUnavailable("PDF text extraction is not supported; upload a text or image file")
    if ctype.startswith("image/") or ext in IMAGE_EXTS:
        return "image"
    if ctype == "text/plain" or ext in TEXT_EXTS:
        return "text"
    raise UnsupportedFileType(f"Unsupported file type '{ctype or ext or 'unknown'}'")


def image_to_text(data: bytes, lang: str = "eng") -> str:
    import pytesseract
    from PIL import Image

    try:
        image = Image.open(io.BytesIO(data)).convert("RGB")
        return pytesseract.image_to_string(image, lang=lang)
    except Exception as e:
        raise TextAcquisitionError(f"OCR failed: {e}") from e


def acquire_text(
    data: bytes,
    filename: str,
    content_type: Optional[str] = None,
    *,
    ocr: Optional[OcrFn] = None,
) -> str:
    kind = detect_kind(filename, content_type)

    if kind == "text":
        return data.decode("utf-8", errors="ignore")

    ocr = ocr or image_to_text
    logger.info("Running OCR on %s (%d bytes)", filename, len(data))
    text = ocr(data)
    return text or ""
