import datetime
from typing import List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field

from app.models.enums import AttendanceStatus, TriggerType

Assignment = Union[Literal["all"], List[str]]


# ---------------------------------------------------------
# BADGES
# ---------------------------------------------------------
class BadgeCreate(BaseModel):
    name: str = Field(min_length=1)
    effects: List[str] = []
    access: List[str] = []


class BadgeUpdate(BaseModel):
    name: Optional[str] = None
    effects: Optional[List[str]] = None
    access: Optional[List[str]] = None


class AssignBadgeRequest(BaseModel):
    email: EmailStr
    badgeId: str


# ---------------------------------------------------------
# CHATBOT
# ---------------------------------------------------------
class TriggerCreate(BaseModel):
    trigger: str = Field(min_length=1)
    response: str
    type: TriggerType = TriggerType.Normal


class TriggerUpdate(BaseModel):
    trigger: Optional[str] = None
    response: Optional[str] = None
    type: Optional[TriggerType] = None


class ChatQuery(BaseModel):
    message: str


# ---------------------------------------------------------
# NOTICES / TESTS (free-form beyond the fields below)
# ---------------------------------------------------------
class NoticeCreate(BaseModel):
    model_config = ConfigDict(extra="allow")

    title: str = Field(min_length=1)
    content: Optional[str] = None
    assignedStudents: Assignment = "all"


class NoticeUpdate(BaseModel):
    model_config = ConfigDict(extra="allow")

    title: Optional[str] = None
    content: Optional[str] = None
    assignedStudents: Optional[Assignment] = None


class TestCreate(BaseModel):
    model_config = ConfigDict(extra="allow")

    title: str = Field(min_length=1)
    assignedStudents: Assignment = "all"


class TestUpdate(BaseModel):
    model_config = ConfigDict(extra="allow")

    title: Optional[str] = None
    assignedStudents: Optional[Assignment] = None


# ---------------------------------------------------------
# ATTENDANCE
# ---------------------------------------------------------
class AttendanceEntry(BaseModel):
    username: str = Field(min_length=1)
    date: datetime.date
    status: Optional[AttendanceStatus] = None


# ---------------------------------------------------------
# LOGS / ANALYTICS / NOTIFY
# ---------------------------------------------------------
class LogCreate(BaseModel):
    action: str = Field(min_length=1, validation_alias=AliasChoices("action", "msg"))


class AnalyticsEventCreate(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str = Field(min_length=1)


class NotifyRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    message: str
    level: str = "info"
