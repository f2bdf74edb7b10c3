from __future__ import annotations

from dataclasses import dataclass

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse


class LedgerError(Exception):
    """Base class for recoverable ledger failures."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFound(LedgerError):
    status_code = status.HTTP_404_NOT_FOUND


class InvalidTransition(LedgerError):
    status_code = status.HTTP_409_CONFLICT


class Unauthorized(LedgerError):
    status_code = status.HTTP_403_FORBIDDEN


class Conflict(LedgerError):
    """Raised when a write collides with an existing record or with concurrent changes."""

    status_code = status.HTTP_409_CONFLICT


class AuditImmutableError(InvalidTransition):
    """Raised when something tries to rewrite or remove a verification row."""


@dataclass(frozen=True)
class ConsistencyDrift:
    """A cached total that reconciliation found out of step with the submissions."""

    user_id: int
    cached_points: int | None
    actual_points: int

    @property
    def delta(self) -> int:
        return self.actual_points - (self.cached_points or 0)


def raise_not_found(kind: str, ident: int):
    raise NotFound(f"{kind} {ident} not found")


def raise_user_not_permitted():
    raise Unauthorized("User is not permitted to access this resource")


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail, "error": type(exc).__name__})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LedgerError, ledger_error_handler)
