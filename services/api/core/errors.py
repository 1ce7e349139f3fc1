"""
Error taxonomy for the bridge inspection service.

FolderIndex / DocumentStore raise these; the request router is the only
place that catches them and turns them into response payloads.
"""
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Machine-readable error codes."""

    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    ACCESS_DENIED = "ACCESS_DENIED"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class BridgeInspectionError(Exception):
    """
    Base exception for all service errors.

    Carries a human-readable message, an error code and optional details.
    """

    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"error": self.error_code.value, "message": self.message}
        if self.details:
            out["details"] = self.details
        return out


class ConfigurationError(BridgeInspectionError):
    """Root folder id unset (sentinel) or otherwise invalid deployment config."""

    error_code = ErrorCode.CONFIGURATION_ERROR


class NotFoundError(BridgeInspectionError):
    """Document or folder id does not resolve."""

    error_code = ErrorCode.NOT_FOUND

    def __init__(self, kind: str, identifier: str):
        super().__init__(
            f"{kind} not found: {identifier}",
            details={"kind": kind, "id": identifier},
        )
        self.kind = kind
        self.identifier = identifier


class AccessError(BridgeInspectionError):
    """Host denied permission."""

    error_code = ErrorCode.ACCESS_DENIED

    def __init__(self, kind: str, identifier: str):
        super().__init__(
            f"Permission denied for {kind}: {identifier}",
            details={"kind": kind, "id": identifier},
        )
        self.kind = kind
        self.identifier = identifier


class ValidationError(BridgeInspectionError):
    """Missing or malformed request field."""

    error_code = ErrorCode.VALIDATION_ERROR


class InternalError(BridgeInspectionError):
    """Anything else, including host-imposed limits."""

    error_code = ErrorCode.INTERNAL_ERROR
