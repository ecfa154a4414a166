from typing import List, Optional
from pydantic import BaseModel, EmailStr
from app.models.user import UserRole


# ---------------------------------------------------------
# CREATE USER (Admin creates any user)
# ---------------------------------------------------------
class UserCreate(BaseModel):
    # Optional here so a missing email surfaces as the service's ValidationError
    email: Optional[EmailStr] = None
    name: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None   # students may have none
    role: UserRole = UserRole.Student
    badges: Optional[List[str]] = None
    specialAccess: Optional[List[str]] = None
    locked: bool = False

    class Config:
        json_schema_extra = {
            "examples": [
                {"email": "faculty@example.com", "name": "Faculty User", "password": "password123", "role": "faculty"},
                {"email": "student@example.com", "name": "Student User", "role": "student"},
            ]
        }


# ---------------------------------------------------------
# UPDATE USER (Admin edits; shallow merge)
# ---------------------------------------------------------
class UserUpdate(BaseModel):
    email: Optional[EmailStr] = None
    name: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    role: Optional[UserRole] = None
    badges: Optional[List[str]] = None
    specialAccess: Optional[List[str]] = None
    locked: Optional[bool] = None


class LockRequest(BaseModel):
    locked: bool


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None


# ---------------------------------------------------------
# READ USER (response; never carries passwordHash)
# ---------------------------------------------------------
class UserRead(BaseModel):
    id: Optional[str] = None
    email: str
    name: Optional[str] = None
    username: Optional[str] = None
    role: UserRole | str
    badges: List[str] = []
    specialAccess: List[str] = []
    locked: bool = False
    lockedUntil: Optional[str] = None
    createdAt: Optional[str] = None
    lastLogin: Optional[str] = None
