"""Errors raised by the upload core.

Every error carries the HTTP status the views answer with.
"""


class UploadError(Exception):
    status_code = 500


class NotFoundError(UploadError):
    """No record matches the selector."""
    status_code = 404


class AlreadyExistsError(UploadError):
    status_code = 409


class StoreError(UploadError):
    """Any other failure of the backing document store, writes included."""
    status_code = 500


class SerializationError(UploadError):
    """Blob data cannot be represented as JSON-compatible values."""
    status_code = 422


class LinkGenerationError(UploadError):
    status_code = 502
