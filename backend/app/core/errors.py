"""Error kinds raised by the booking core."""

from __future__ import annotations

from collections.abc import Sequence


class BookingError(Exception):
    """Base class for booking pipeline failures."""


class CatalogEntryNotFoundError(BookingError, LookupError):
    """A fully specified selection matched no price catalog row."""

    def __init__(self, catalog: str, filters: dict[str, object]) -> None:
        self.catalog = catalog
        self.filters = dict(filters)
        super().__init__(f"No {catalog} entry matches {self.filters}")


class AmbiguousMatchError(BookingError):
    """A fully specified selection matched more than one price catalog row."""

    def __init__(self, catalog: str, codes: Sequence[str]) -> None:
        self.catalog = catalog
        self.codes = list(codes)
        super().__init__(
            f"{catalog} selection matched {len(self.codes)} rows: {', '.join(self.codes)}"
        )


class BookingValidationError(BookingError, ValueError):
    """Submitted form is incomplete; raised before any write happens."""


class PartialWriteError(BookingError):
    """Some detail rows were written and others failed."""

    def __init__(self, errors: Sequence[str], *, written: int = 0) -> None:
        self.errors = list(errors)
        self.written = written
        super().__init__("; ".join(self.errors))


class AuthRequiredError(BookingError):
    """A write path was reached without an authenticated user."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


class BackendTimeoutError(BookingError, TimeoutError):
    """A backend round trip exceeded the configured timeout."""
