# app/models/user.py

from enum import Enum


class UserRole(str, Enum):
    Admin = "admin"
    Faculty = "faculty"
    Moderator = "moderator"
    Student = "student"
    Tester = "tester"
