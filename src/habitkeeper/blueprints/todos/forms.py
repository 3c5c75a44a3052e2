"""Todo payload and query definitions."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ...services.calendar import parse_iso_day
from ...services.todos import Priority, SortKey, StatusFilter

PRIORITY_ERROR = "Invalid priority. Must be high, medium, or low"
_SORT_ALIASES = {"dueAsc": SortKey.DUE_ASC.value, "dueDesc": SortKey.DUE_DESC.value}


def _check_priority(value: Any) -> Any:
    if value is None or isinstance(value, Priority):
        return value
    try:
        return Priority(str(value))
    except ValueError as exc:
        raise ValueError(PRIORITY_ERROR) from exc


def _check_due(value: Optional[str]) -> Optional[str]:
    if value in (None, ""):
        return None
    if parse_iso_day(value) is None:
        raise ValueError("dueDate must be a YYYY-MM-DD date")
    return value


def _check_parent(value: Any) -> Optional[int]:
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError("parentId must reference an existing todo") from exc


class TodoForm(BaseModel):
    """Payload for creating a todo or subtask."""

    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    title: str = Field(default="", max_length=200)
    notes: str = Field(default="", max_length=2000)
    due_date: Optional[str] = Field(default=None, alias="dueDate")
    priority: Priority = Priority.MEDIUM
    completed: bool = False
    parent_id: Optional[int] = Field(default=None, alias="parentId")

    @field_validator("priority", mode="before")
    @classmethod
    def validate_priority(cls, value: Any) -> Any:
        return Priority.MEDIUM if value in (None, "") else _check_priority(value)

    @field_validator("notes", mode="before")
    @classmethod
    def blank_notes(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("due_date")
    @classmethod
    def validate_due(cls, value: Optional[str]) -> Optional[str]:
        return _check_due(value)

    @field_validator("parent_id", mode="before")
    @classmethod
    def validate_parent(cls, value: Any) -> Optional[int]:
        return _check_parent(value)

    @model_validator(mode="after")
    def require_title(self) -> "TodoForm":
        if not self.title:
            raise ValueError("Title is required")
        return self


class TodoUpdateForm(BaseModel):
    """Partial patch; only provided keys are applied."""

    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    title: Optional[str] = Field(default=None, max_length=200)
    notes: Optional[str] = Field(default=None, max_length=2000)
    due_date: Optional[str] = Field(default=None, alias="dueDate")
    priority: Optional[Priority] = None
    completed: Optional[bool] = None

    @field_validator("priority", mode="before")
    @classmethod
    def validate_priority(cls, value: Any) -> Any:
        return _check_priority(value)

    @field_validator("due_date")
    @classmethod
    def validate_due(cls, value: Optional[str]) -> Optional[str]:
        return _check_due(value)

    @model_validator(mode="after")
    def reject_nulls(self) -> "TodoUpdateForm":
        for key in ("title", "priority", "completed"):
            if key in self.model_fields_set and getattr(self, key) is None:
                raise ValueError(f"{key} cannot be null")
        if "title" in self.model_fields_set and not self.title:
            raise ValueError("Title is required")
        return self

    def changes(self) -> dict[str, Any]:
        patch = self.model_dump(exclude_unset=True)
        if patch.get("priority") is not None:
            patch["priority"] = Priority(patch["priority"]).value
        if "notes" in patch and patch["notes"] is None:
            patch["notes"] = ""
        return patch


class MoveForm(BaseModel):
    """Reorder within the current parent, or re-parent when ``parentId`` is sent."""

    model_config = ConfigDict(populate_by_name=True)

    index: Optional[int] = Field(default=None, ge=0)
    parent_id: Optional[int] = Field(default=None, alias="parentId")

    @field_validator("parent_id", mode="before")
    @classmethod
    def validate_parent(cls, value: Any) -> Optional[int]:
        return _check_parent(value)


class TodoQuery(BaseModel):
    """Search, filter and sort options for the tree view."""

    q: str = ""
    priority: Optional[Priority] = None
    status: StatusFilter = StatusFilter.ALL
    sort: SortKey = SortKey.DUE_ASC

    @field_validator("priority", mode="before")
    @classmethod
    def all_priorities(cls, value: Any) -> Any:
        return None if value in (None, "", "all") else _check_priority(value)

    @field_validator("sort", mode="before")
    @classmethod
    def sort_alias(cls, value: Any) -> Any:
        if value in (None, ""):
            return SortKey.DUE_ASC
        return _SORT_ALIASES.get(value, value)

    @field_validator("status", mode="before")
    @classmethod
    def default_status(cls, value: Any) -> Any:
        return StatusFilter.ALL if value in (None, "") else value


__all__ = ["MoveForm", "PRIORITY_ERROR", "TodoForm", "TodoQuery", "TodoUpdateForm"]
