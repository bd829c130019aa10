"""Application-specific exceptions for consistent error reporting."""

from typing import Any


class StoreAuditError(Exception):
    """Application error with standardized error code."""

    code = "STORE_AUDIT_ERROR"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | list[Any] | None = None,
    ):
        """Initialize application error."""
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        """Convert to the {code, message, details} envelope."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ImportStateError(StoreAuditError):
    """Import workflow step invoked from the wrong state."""

    code = "IMPORT_INVALID_STATE"


class BackupFormatError(StoreAuditError):
    """Backup document could not be read or validated."""

    code = "BACKUP_INVALID"
