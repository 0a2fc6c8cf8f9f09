from sqlalchemy.orm import Session
from pydantic import BaseModel
from datetime import datetime, time
from typing import List, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import logging

from ..core.config import settings
from ..core.errors import ClinicConfigurationError
from ..models.clinic_settings import ClinicSettings

logger = logging.getLogger(__name__)

MAX_SLOT_DURATION_MIN = 24 * 60

class ClinicConfig(BaseModel):
    slot_duration_min: int
    booking_window_days: int
    timezone: str
    working_windows: List[Tuple[time, time]]

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

def parse_working_windows(raw_windows: List[str]) -> List[Tuple[time, time]]:
    """Parse "HH:MM-HH:MM" strings into ordered, non-overlapping windows."""
    windows = []
    for raw in raw_windows:
        try:
            open_raw, close_raw = raw.split("-")
            opens = datetime.strptime(open_raw.strip(), "%H:%M").time()
            closes = datetime.strptime(close_raw.strip(), "%H:%M").time()
        except ValueError:
            raise ClinicConfigurationError(f"invalid working window {raw!r}")
        if closes <= opens:
            raise ClinicConfigurationError(f"working window {raw!r} closes before it opens")
        windows.append((opens, closes))

    windows.sort()
    for (_, previous_close), (next_open, _) in zip(windows, windows[1:]):
        if next_open < previous_close:
            raise ClinicConfigurationError("working windows overlap")
    if not windows:
        raise ClinicConfigurationError("no working windows configured")
    return windows

def load_clinic_config(db: Session) -> ClinicConfig:
    """Load the clinic settings row.

    Raises ClinicConfigurationError when the row is missing or holds
    values the slot calculator cannot work with. Nothing is defaulted.
    """
    row = db.query(ClinicSettings).order_by(ClinicSettings.id).first()
    if row is None:
        raise ClinicConfigurationError("clinic_settings row is missing")

    if not row.slot_duration_min or not 0 < row.slot_duration_min <= MAX_SLOT_DURATION_MIN:
        raise ClinicConfigurationError(f"invalid slot_duration_min {row.slot_duration_min!r}")
    if row.booking_window_days is None or row.booking_window_days < 0:
        raise ClinicConfigurationError(f"invalid booking_window_days {row.booking_window_days!r}")
    try:
        ZoneInfo(row.timezone)
    except (ZoneInfoNotFoundError, ValueError, TypeError):
        raise ClinicConfigurationError(f"unknown timezone {row.timezone!r}")

    return ClinicConfig(
        slot_duration_min=row.slot_duration_min,
        booking_window_days=row.booking_window_days,
        timezone=row.timezone,
        working_windows=parse_working_windows(settings.WORKING_WINDOWS),
    )
