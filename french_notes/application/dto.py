from dataclasses import dataclass

from ..domain.entities import DeviceStatus


@dataclass
class RegisterUserInput:
    username: str
    password: str
    name: str | None = None
    email: str | None = None


@dataclass
class LoginOutcome:
    status: DeviceStatus
    log_id: int
    message: str
    token: str | None = None

    @property
    def approved(self) -> bool:
        return self.status is DeviceStatus.APPROVED


@dataclass
class MediaUpload:
    content: bytes
    filename: str | None = None
    content_type: str | None = None
