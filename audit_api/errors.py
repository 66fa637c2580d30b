"""
Error taxonomy for the Audit Trail API.

Every error raised by the store, the repositories or a ledger backend
derives from AuditTrailError and carries the HTTP status it maps to.
The exception handlers in audit_api.main turn them into {"error": message}.
"""


class AuditTrailError(Exception):
    """Base class. Subclasses set status_code."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(AuditTrailError):
    """The requested id is not in the collection."""

    status_code = 404


class ValidationError(AuditTrailError):
    """A required field is missing or has an unknown value."""

    status_code = 400


class StorageError(AuditTrailError):
    """Reading or writing a collection file failed."""

    status_code = 500


class UpstreamError(AuditTrailError):
    """The external ledger gateway failed. The upstream message is echoed."""

    status_code = 500
