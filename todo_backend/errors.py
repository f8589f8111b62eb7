"""
Failure taxonomy shared by the service layer and the HTTP gateway.

Every failure carries a machine-readable kind (gRPC status code plus the HTTP
status the gateway answers with) and a human-readable message. The underlying
cause, when there is one, is chained with ``raise ... from exc``.
"""
from __future__ import annotations

from enum import Enum


class ErrorKind(Enum):
    UNKNOWN = ("Unknown", 2, 500)
    INVALID_ARGUMENT = ("InvalidArgument", 3, 400)
    NOT_FOUND = ("NotFound", 5, 404)
    UNIMPLEMENTED = ("Unimplemented", 12, 501)

    def __init__(self, label: str, grpc_code: int, http_status: int):
        self.label = label
        self.grpc_code = grpc_code
        self.http_status = http_status


class TodoServiceError(Exception):
    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @classmethod
    def wrap(cls, context: str, exc: BaseException) -> "TodoServiceError":
        """Build an error whose message reads ``"<context> -> <cause>"``."""
        return cls(f"{context} -> {exc}")

    def to_dict(self) -> dict:
        return {
            "error": self.message,
            "code": self.kind.grpc_code,
            "message": self.message,
            "details": [],
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.kind.label}: {self.message!r})"


class InvalidArgumentError(TodoServiceError):
    kind = ErrorKind.INVALID_ARGUMENT


class NotFoundError(TodoServiceError):
    kind = ErrorKind.NOT_FOUND


class UnimplementedError(TodoServiceError):
    kind = ErrorKind.UNIMPLEMENTED


class UnknownError(TodoServiceError):
    kind = ErrorKind.UNKNOWN


class ConfigError(ValueError):
    """Raised at startup when settings cannot be resolved."""
