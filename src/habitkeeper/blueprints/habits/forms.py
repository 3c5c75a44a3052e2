"""Habit payload definitions."""

from __future__ import annotations

import re
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ...services.habits import HabitFrequency, is_valid_history_entry

_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")
FREQUENCY_ERROR = "Invalid frequency. Must be daily, weekly, custom, or monthly"


def _check_frequency(value: Any) -> Any:
    if value is None or isinstance(value, HabitFrequency):
        return value
    try:
        return HabitFrequency(str(value))
    except ValueError as exc:
        raise ValueError(FREQUENCY_ERROR) from exc


def _check_color(value: Optional[str]) -> Optional[str]:
    if value is not None and not _COLOR.match(value):
        raise ValueError("Invalid color format")
    return value


def _check_history(value: Optional[list[str]]) -> Optional[list[str]]:
    if value is None:
        return value
    bad = [entry for entry in value if not is_valid_history_entry(entry)]
    if bad:
        raise ValueError(f"History entries must be YYYY-MM-DD dates: {', '.join(map(str, bad))}")
    return sorted(set(value))


class HabitForm(BaseModel):
    """Payload for creating a habit."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(default="", max_length=100)
    category: str = Field(default="", max_length=50)
    frequency: Optional[HabitFrequency] = None
    reminder: str = Field(default="", max_length=32)
    color: str = ""
    history: list[str] = Field(default_factory=list)

    @field_validator("frequency", mode="before")
    @classmethod
    def validate_frequency(cls, value: Any) -> Any:
        if value == "":
            return None
        return _check_frequency(value)

    @field_validator("reminder", mode="before")
    @classmethod
    def blank_reminder(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("history")
    @classmethod
    def validate_history(cls, value: list[str]) -> list[str]:
        return _check_history(value) or []

    @model_validator(mode="after")
    def require_fields(self) -> "HabitForm":
        if not self.name or not self.category or self.frequency is None or not self.color:
            raise ValueError("Name, category, frequency, and color are required")
        _check_color(self.color)
        return self


class HabitUpdateForm(BaseModel):
    """Partial patch for an existing habit; only provided keys are applied."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, max_length=100)
    category: Optional[str] = Field(default=None, max_length=50)
    frequency: Optional[HabitFrequency] = None
    reminder: Optional[str] = Field(default=None, max_length=32)
    color: Optional[str] = None
    history: Optional[list[str]] = None

    @field_validator("frequency", mode="before")
    @classmethod
    def validate_frequency(cls, value: Any) -> Any:
        return _check_frequency(value)

    @field_validator("name", "category")
    @classmethod
    def not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value:
            raise ValueError("Name and category cannot be empty")
        return value

    @field_validator("color")
    @classmethod
    def validate_color(cls, value: Optional[str]) -> Optional[str]:
        return _check_color(value)

    @field_validator("history")
    @classmethod
    def validate_history(cls, value: Optional[list[str]]) -> Optional[list[str]]:
        return _check_history(value)

    @model_validator(mode="after")
    def reject_nulls(self) -> "HabitUpdateForm":
        for key in ("name", "category", "frequency", "color", "history"):
            if key in self.model_fields_set and getattr(self, key) is None:
                raise ValueError(f"{key} cannot be null")
        return self

    def changes(self) -> dict[str, Any]:
        """Fields the client actually sent, with enums flattened to strings."""

        patch = self.model_dump(exclude_unset=True)
        if patch.get("frequency") is not None:
            patch["frequency"] = HabitFrequency(patch["frequency"]).value
        if "reminder" in patch and patch["reminder"] is None:
            patch["reminder"] = ""
        return patch


class ToggleForm(BaseModel):
    """Optional explicit day for a completion toggle."""

    date: Optional[str] = None

    @field_validator("date")
    @classmethod
    def validate_date(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not is_valid_history_entry(value):
            raise ValueError("date must be a YYYY-MM-DD date")
        return value


__all__ = ["FREQUENCY_ERROR", "HabitForm", "HabitUpdateForm", "ToggleForm"]
