"""
PDF/TXT → plain text, with the upload-side sanity checks.
"""

import io
import logging

import pdfplumber
from pdfminer.pdfdocument import PDFPasswordIncorrect
from pdfminer.pdfparser import PDFSyntaxError

from policy_analyzer.exceptions import PDFExtractionError
from policy_analyzer.ruleset import MIN_POLICY_KEYWORDS, POLICY_KEYWORDS
from policy_analyzer.validation import keyword_hits

logger = logging.getLogger(__name__)

MIN_EXTRACTED_CHARS = 100

UNREADABLE_MESSAGE = "We couldn't read this file. Please try uploading again."


def is_policy_document(text: str) -> bool:
    """At least MIN_POLICY_KEYWORDS distinct insurance keywords must appear."""
    return len(keyword_hits(text, POLICY_KEYWORDS)) >= MIN_POLICY_KEYWORDS


def _causes(exc):
    """Yield exc and the exceptions it wraps (pdfplumber re-raises pdfminer errors)."""
    seen = set()
    while exc is not None and id(exc) not in seen:
        seen.add(id(exc))
        yield exc
        wrapped = exc.args[0] if exc.args and isinstance(exc.args[0], BaseException) else None
        exc = exc.__cause__ or wrapped or exc.__context__


def _is_password_error(exc: BaseException) -> bool:
    for cause in _causes(exc):
        if isinstance(cause, PDFPasswordIncorrect):
            return True
        text = str(cause).lower()
        if "password" in text or "encrypt" in text:
            return True
    return False


def _read_pdf(file_bytes: bytes) -> str:
    try:
        with pdfplumber.open(io.BytesIO(file_bytes)) as pdf:
            return "\n\n".join(page.extract_text() or "" for page in pdf.pages)
    except Exception as exc:
        if _is_password_error(exc):
            raise PDFExtractionError(
                "PASSWORD_PROTECTED",
                "This PDF is password protected. Please upload an unlocked version.",
            )
        if any(isinstance(cause, PDFSyntaxError) for cause in _causes(exc)):
            logger.warning("Invalid PDF: %s", exc)
        else:
            logger.warning("PDF extraction failed: %s", exc)
        raise PDFExtractionError("CORRUPTED", UNREADABLE_MESSAGE)


def read_file(filename: str, file_bytes: bytes) -> str:
    """Extract plain text from a PDF or TXT upload and confirm it looks like a policy."""
    if filename.lower().endswith(".pdf") or file_bytes[:5] == b"%PDF-":
        text = _read_pdf(file_bytes)
    else:
        try:
            text = file_bytes.decode("utf-8")
        except UnicodeDecodeError:
            raise PDFExtractionError("UNKNOWN", UNREADABLE_MESSAGE)

    text = text.strip()
    logger.info("Extracted %d characters from %s", len(text), filename or "<upload>")

    if len(text) < MIN_EXTRACTED_CHARS:
        raise PDFExtractionError(
            "SCANNED_PDF",
            "This PDF appears to be scanned or image-based. Please upload a text-based PDF "
            "where you can select and copy text.",
        )

    if not is_policy_document(text):
        raise PDFExtractionError(
            "NOT_A_POLICY",
            "This doesn't appear to be an insurance policy document. "
            "Please upload a valid insurance policy PDF.",
        )

    return text
