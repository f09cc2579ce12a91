from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from shared.contracts.enums import ErrorCategory


@dataclass
class AppError(Exception):
    category: ErrorCategory
    message: str
    http_status: int = 400
    details: dict[str, Any] | None = field(default=None)

    def __str__(self) -> str:
        return self.message


class ValidationAppError(AppError):
    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCategory.VALIDATION_ERROR, message, http_status=422, details=details)


class NotFoundError(AppError):
    def __init__(self, resource: str, identifier: object) -> None:
        self.resource = resource
        self.identifier = str(identifier)
        super().__init__(
            ErrorCategory.NOT_FOUND,
            f"{resource} with id {identifier} not found",
            http_status=404,
            details={"resource": resource, "id": str(identifier)},
        )


class InvalidStateError(AppError):
    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCategory.INVALID_STATE, message, http_status=400, details=details)


class ExternalServiceError(AppError):
    def __init__(self, service: str, service_error_code: str, message: str) -> None:
        self.service = service
        self.service_error_code = service_error_code
        super().__init__(
            ErrorCategory.EXTERNAL_SERVICE_ERROR,
            f"{service}: {message}",
            http_status=502,
            details={"service": service, "service_error_code": service_error_code},
        )
