"""Shared FastAPI dependencies."""

from datetime import date, datetime, timezone

from fastapi import Depends, Query

from bomber.config import Settings, get_settings
from bomber.progression.tuning import EconomyTuning
from bomber.redis_client import get_redis_optional

get_redis_dep = get_redis_optional


def get_tuning(settings: Settings = Depends(get_settings)) -> EconomyTuning:  # noqa: B008
    """Economy knobs from settings (override in tests with app.dependency_overrides)."""
    return EconomyTuning.from_settings(settings)


def server_today() -> date:
    """Current UTC date from the server clock. Claims are keyed on this, never on client input."""
    return datetime.now(timezone.utc).date()


def get_today(day: date | None = Query(default=None, description="UTC date; defaults to today")) -> date:  # noqa: B008
    """Date for read-only lookups, so clients can preview another day's challenge."""
    return day or server_today()
