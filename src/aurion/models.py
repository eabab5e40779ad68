"""Pydantic models for menu, schedule and class-group data.

All data structures use Pydantic v2 for validation, serialization, and type safety.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from aurion.errors import PreconditionError

CATEGORY_PREFIX = "submenu_"


class MenuNode(BaseModel):
    """One entry of the portal's sidebar menu.

    Ids starting with ``submenu_`` are categories that hold further entries;
    anything else is a leaf (a page that can be selected). Edges are stored as
    ids, the owning index lives in ``aurion.menu.Menu``.
    """

    id: str
    name: str
    children: list[str] = Field(default_factory=list)
    parent: str | None = None

    @property
    def is_category(self) -> bool:
        return self.id.startswith(CATEGORY_PREFIX)

    @property
    def is_loaded(self) -> bool:
        # categories are loaded once they have children, leaves never get any
        return not (self.is_category ^ bool(self.children))

    @property
    def is_leaf(self) -> bool:
        return not self.is_category and not self.children


class EventKind(str, Enum):
    """Closed classification of schedule entries."""

    COURSE = "Course"
    EXAM = "Exam"
    LEAVE = "Leave"
    MEETING = "Meeting"
    PRACTICAL_WORK = "PracticalWork"
    SUPERVISED_WORK = "SupervisedWork"
    PROJECT = "Project"
    OTHER = "Other"


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class RawEvent(BaseModel):
    """One record of the schedule JSON sent by the PrimeFaces calendar widget.

    Field names follow the wire format (``className``, ``allDay``).
    """

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    id: str
    title: str  # "08h00 à 10h00 - B001 - CM - Maths - Vectors - M. DUPONT"
    start: datetime
    end: datetime
    all_day: bool = Field(default=False, alias="allDay")
    editable: bool = False
    class_name: str = Field(alias="className")


class EventTitle(BaseModel):
    """Structured content of an event title."""

    rooms: list[str]
    subject: str
    chapter: str | None = None
    participants: list[str] = Field(default_factory=list)


class Event(BaseModel):
    """A course, an exam, a meeting... taken from the schedule."""

    id: int
    kind: EventKind
    start: datetime
    end: datetime
    rooms: list[str]
    subject: str  # "Mathematics", "Physics"
    chapter: str | None = None  # "Vectors", "Electricity"
    participants: list[str] = Field(default_factory=list)  # professors, supervisors

    @field_validator("start", "end")
    @classmethod
    def _normalize_timezone(cls, value: datetime) -> datetime:
        return _as_utc(value)


class ClassGroup(BaseModel):
    """A group listed on the planning choice page of a leaf menu entry."""

    id: int  # data-rk of the table row
    name: str


@dataclass(frozen=True)
class SessionTokens:
    """Session-global tokens scraped from the service root after login.

    Either may be missing if the portal markup changed; the ``require_*``
    accessors are what protocol calls use.
    """

    view_state: str | None = None
    form_id: int | None = None

    def require_view_state(self) -> str:
        if self.view_state is None:
            raise PreconditionError(
                "No view state available (not logged in, or the portal did not expose one)"
            )
        return self.view_state

    def require_form_id(self) -> int:
        if self.form_id is None:
            raise PreconditionError(
                "No form id available (not logged in, or the portal did not expose one)"
            )
        return self.form_id


@dataclass(frozen=True)
class ScheduleTokens:
    """Per-call tokens scraped from the planning page before a schedule fetch."""

    form_id: int
    view_state: str
