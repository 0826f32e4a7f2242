"""
Frequency Settings.

The step after interest selection: how often updates arrive, at what time
for a custom schedule, and whether delivery is paused. These are plain
profile fields; the functions here produce the next snapshot for the store
to commit.
"""

import logging
import re
from dataclasses import replace

from pydantic import BaseModel, Field, field_validator, model_validator

from .state import Profile, UpdateFrequency

logger = logging.getLogger(__name__)

DEFAULT_CUSTOM_TIME = "09:00"
CUSTOM_TIME_REQUIRED_MESSAGE = "Please specify a time for custom frequency."

_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class FrequencyForm(BaseModel):
    """Frequency step form data."""

    frequency: UpdateFrequency = Field(
        default=UpdateFrequency.MORNING_DIGEST,
        description="Delivery schedule",
    )

    custom_time: str | None = Field(
        default=None,
        description="Time of day (HH:MM, 24h) for the custom schedule",
    )

    @field_validator("custom_time", mode="before")
    @classmethod
    def normalize_time(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = str(v).strip()
        if not v:
            return None
        if not _TIME_PATTERN.match(v):
            raise ValueError(f"Time must be HH:MM (24h), got '{v}'")
        return v

    @model_validator(mode="after")
    def custom_needs_time(self) -> "FrequencyForm":
        if self.frequency is UpdateFrequency.CUSTOM and self.custom_time is None:
            self.custom_time = DEFAULT_CUSTOM_TIME
        return self


def apply_frequency(
    profile: Profile,
    frequency: UpdateFrequency | str,
    custom_time: str | None = None,
) -> Profile:
    """
    Next snapshot with the delivery schedule set.

    A non-custom frequency drops any custom time. Choosing Custom without a
    time keeps the stored one, or falls back to 09:00.
    """
    frequency = UpdateFrequency(frequency)
    if frequency is not UpdateFrequency.CUSTOM:
        return replace(profile, frequency=frequency, custom_frequency_time=None)

    form = FrequencyForm(
        frequency=frequency,
        custom_time=custom_time or profile.custom_frequency_time,
    )
    return replace(profile, frequency=form.frequency, custom_frequency_time=form.custom_time)


def validate_frequency(profile: Profile) -> list[str]:
    """
    Validate the schedule with specific error messages.

    Returns:
        Messages; empty means the profile may advance
    """
    errors = []
    if profile.frequency is UpdateFrequency.CUSTOM and not profile.custom_frequency_time:
        errors.append(CUSTOM_TIME_REQUIRED_MESSAGE)
    return errors


def set_alerts_paused(profile: Profile, paused: bool) -> Profile:
    if paused != profile.alerts_paused:
        logger.info(f"Updates {'paused' if paused else 'resumed'}")
    return replace(profile, alerts_paused=paused)


def toggle_alerts_paused(profile: Profile) -> Profile:
    return set_alerts_paused(profile, not profile.alerts_paused)
