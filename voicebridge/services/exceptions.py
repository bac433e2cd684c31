"""Domain-specific exceptions."""

from __future__ import annotations


class ServiceError(Exception):
    pass


class QuotaExceeded(ServiceError):
    def __init__(self, *, daily_remaining: int, monthly_remaining: int, requested: int) -> None:
        super().__init__(
            f"Token quota exhausted: requested {requested}, "
            f"daily remaining {daily_remaining}, monthly remaining {monthly_remaining}."
        )
        self.daily_remaining = daily_remaining
        self.monthly_remaining = monthly_remaining
        self.requested = requested


class UnsupportedLanguage(ServiceError):
    def __init__(self, code: str | None, reason: str = "not a supported language") -> None:
        super().__init__(f"Language {code!r} is {reason}.")
        self.code = code


class InvalidLanguagePair(ServiceError):
    pass


class ExternalComputeError(ServiceError):
    """An external speech or translation call failed; ``step`` names which one."""

    def __init__(self, step: str, message: str | None = None) -> None:
        super().__init__(f"{step} failed" + (f": {message}" if message else ""))
        self.step = step


class SessionExpired(ServiceError):
    pass


__all__ = [
    "ExternalComputeError",
    "InvalidLanguagePair",
    "QuotaExceeded",
    "ServiceError",
    "SessionExpired",
    "UnsupportedLanguage",
]
