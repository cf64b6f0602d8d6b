from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class ErrorEnvelope:
    error_code: str
    message: str
    trace_id: str
    retryable: bool


class DomainError(Exception):
    status_code = 400

    def __init__(self, error_code: str, message: str, retryable: bool = False) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.message = message
        self.retryable = retryable


class ValidationError(DomainError):
    status_code = 422

    def __init__(self, message: str = "검증에 실패했어요.") -> None:
        super().__init__("VALIDATION_FAILED", message, retryable=False)


class NotFoundError(DomainError):
    status_code = 404

    def __init__(self, message: str = "대상을 찾지 못했어요.") -> None:
        super().__init__("NOT_FOUND", message, retryable=False)


class ConflictError(DomainError):
    status_code = 409

    def __init__(self, message: str = "현재 상태와 충돌하는 요청이에요.", *, retryable: bool = True) -> None:
        super().__init__("CONFLICT", message, retryable=retryable)
