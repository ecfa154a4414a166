import datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import AttendanceStatus
from app.models.user import UserRole


# ---------------------------------------------------------
# COMMAND ACTIONS (closed vocabulary, tagged by "kind")
# ---------------------------------------------------------
class _Action(BaseModel):
    model_config = ConfigDict(extra="forbid")


class LockAllAction(_Action):
    kind: Literal["lock_all"]
    durationSeconds: int = Field(default=60, ge=0)
    permanent: bool = False


class UnlockAllAction(_Action):
    kind: Literal["unlock_all"]


class NotifyAction(_Action):
    kind: Literal["notify"]
    message: str
    level: Literal["info", "success", "warning", "error"] = "info"


class DeleteLastTestAction(_Action):
    kind: Literal["delete_last_test"]


class RestoreLastTestAction(_Action):
    kind: Literal["restore_last_test"]


class AssignBadgeAllAction(_Action):
    kind: Literal["assign_badge_all"]
    badgeId: str
    role: UserRole = UserRole.Student


class MarkAttendanceAllAction(_Action):
    kind: Literal["mark_attendance_all"]
    status: AttendanceStatus = AttendanceStatus.Present
    date: Optional[datetime.date] = None  # defaults to today (UTC)


CommandAction = Annotated[
    Union[
        LockAllAction,
        UnlockAllAction,
        NotifyAction,
        DeleteLastTestAction,
        RestoreLastTestAction,
        AssignBadgeAllAction,
        MarkAttendanceAllAction,
    ],
    Field(discriminator="kind"),
]


# ---------------------------------------------------------
# MASTER COMMAND CRUD
# ---------------------------------------------------------
class MasterCommandCreate(BaseModel):
    name: str = Field(min_length=1)
    action: CommandAction
    permission: str = "all"
    dangerous: bool = False


class MasterCommandUpdate(BaseModel):
    name: Optional[str] = None
    action: Optional[CommandAction] = None
    permission: Optional[str] = None
    dangerous: Optional[bool] = None


class MasterCommandRead(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    name: str
    action: dict
    permission: str = "all"
    dangerous: bool = False
    createdAt: Optional[str] = None


class ExecuteRequest(BaseModel):
    confirm: bool = False
