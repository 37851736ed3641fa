# src/server/errors.py

from __future__ import annotations


class ReportError(Exception):
    """Base class for failures around the extraction engine (never raised by it)."""

    status_code = 500


class UnsupportedFileType(ReportError):
    status_code = 415


class PdfTextUnavailable(UnsupportedFileType):
    """PDF text extraction is not implemented; callers must not treat this as zero findings."""


class FileTooLarge(ReportError):
    status_code = 413


class TextAcquisitionError(ReportError):
    status_code = 422


class StorageFailure(ReportError):
    status_code = 500


class PersistenceFailure(ReportError):
    status_code = 500
