from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    ADMIN = "admin"
    STUDENT = "student"


class DeviceStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"


class ContentType(str, Enum):
    WRITING = "writing"
    SPEAKING = "speaking"
    READING = "reading"
    LISTENING = "listening"
    EXAM_BASED = "exam-based"


@dataclass(frozen=True)
class User:
    id: int | None
    username: str
    password_hash: str
    role: Role = Role.STUDENT
    name: str | None = None
    email: str | None = None


@dataclass(frozen=True)
class LoginLog:
    id: int | None
    user_id: int
    username: str
    device_id: str
    device_info: str
    status: DeviceStatus
    created_at: datetime | None = None
    updated_at: datetime | None = None
