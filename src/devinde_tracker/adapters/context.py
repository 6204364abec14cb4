"""Explicit clock, id factory and code registry threaded through every adapter call."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, date, datetime, time
from typing import Final

from devinde_tracker.adapters.codes import DEFAULT_CODES, CodeRegistry
from devinde_tracker.constants import DEFAULT_CURRENCY
from devinde_tracker.domain.ids import IdFactory, clock_id_factory

_ZULU_SUFFIX: Final[str] = "Z"


@dataclass(frozen=True, slots=True)
class AdapterContext:
    """Inputs that would otherwise be read implicitly from the environment.

    ``now`` stamps generated timestamps and drives lateness checks,
    ``new_id`` mints synthetic ids for records stored without one and
    ``codes`` resolves enum families (default registry unless synonyms were
    configured).
    """

    now: datetime
    new_id: IdFactory
    codes: CodeRegistry = DEFAULT_CODES
    currency: str = DEFAULT_CURRENCY

    def __post_init__(self) -> None:
        if not isinstance(self.now, datetime):
            raise ValueError(f"now: expected datetime, got {type(self.now).__name__}")
        object.__setattr__(self, "now", _as_utc(self.now))

    @classmethod
    def at(
        cls,
        now: datetime,
        *,
        new_id: IdFactory | None = None,
        codes: CodeRegistry | None = None,
        currency: str = DEFAULT_CURRENCY,
    ) -> AdapterContext:
        """Build a context for ``now``; ids default to ULIDs stamped with ``now``."""
        return cls(
            now=now,
            new_id=new_id if new_id is not None else clock_id_factory(now),
            codes=codes if codes is not None else DEFAULT_CODES,
            currency=currency,
        )

    @classmethod
    def current(cls, *, codes: CodeRegistry | None = None, currency: str = DEFAULT_CURRENCY) -> AdapterContext:
        return cls.at(datetime.now(tz=UTC), codes=codes, currency=currency)

    @property
    def now_iso(self) -> str:
        return format_timestamp(self.now)


def format_timestamp(value: datetime) -> str:
    """Render ``value`` as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    return _as_utc(value).isoformat(timespec="milliseconds").replace("+00:00", _ZULU_SUFFIX)


def parse_timestamp(value: object) -> datetime | None:
    """Parse an ISO-8601 date or datetime string; ``None`` when unparseable.

    Date-only values resolve to midnight UTC and naive datetimes are read as UTC.
    """
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=UTC)
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    if text.endswith(("z", _ZULU_SUFFIX)):
        text = f"{text[:-1]}+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return _as_utc(parsed)


def format_date(value: datetime) -> str:
    """Render the calendar date of ``value`` as ``YYYY-MM-DD``."""
    return _as_utc(value).date().isoformat()


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None or value.utcoffset() is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


__all__ = [
    "AdapterContext",
    "format_date",
    "format_timestamp",
    "parse_timestamp",
]
