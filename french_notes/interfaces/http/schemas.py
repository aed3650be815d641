from datetime import datetime

from pydantic import BaseModel, EmailStr, Field
from pydantic.alias_generators import to_camel

from ...domain.entities import ContentType, DeviceStatus, Role


class ApiModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class AdminRegisterReq(ApiModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)

class LoginReq(ApiModel):
    username: str
    password: str

class StudentRegisterReq(ApiModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=6)
    name: str
    email: EmailStr

class StudentLoginReq(ApiModel):
    username: str
    password: str
    device_id: str = Field(min_length=1, max_length=255)
    device_info: str = ""

class ForgotPasswordReq(ApiModel):
    email: EmailStr

class ResetPasswordReq(ApiModel):
    password: str = Field(min_length=6)

class DecisionReq(ApiModel):
    status: str


class MessageResp(ApiModel):
    message: str

class UserResp(ApiModel):
    id: int
    username: str
    role: Role
    name: str | None = None
    email: str | None = None

class RegisterResp(ApiModel):
    message: str
    user: UserResp

class TokenResp(ApiModel):
    token: str
    token_type: str = "bearer"

class StudentLoginResp(ApiModel):
    token: str | None = None
    message: str
    log_id: int
    status: DeviceStatus


class LoginLogUser(ApiModel):
    id: int
    username: str
    email: str | None = None
    name: str | None = None

class LoginLogOut(ApiModel):
    id: int
    user_id: int
    username: str
    device_id: str
    device_info: str
    status: DeviceStatus
    created_at: datetime | None = None
    updated_at: datetime | None = None
    user: LoginLogUser | None = None

class DecisionResp(ApiModel):
    message: str
    log_id: int
    status: DeviceStatus

class ResetLogsResp(ApiModel):
    message: str
    deleted: int


class ContentOut(ApiModel):
    id: int
    title: str
    type: ContentType
    text: str | None = None
    image_url: str | None = None
    audio_url: str | None = None
    video_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class Submitter(ApiModel):
    id: int
    username: str

class IdeaOut(ApiModel):
    id: int
    title: str
    body: str
    file_path: str | None = None
    created_at: datetime | None = None
    submitted_by: Submitter | None = None

class IdeaSubmitResp(ApiModel):
    message: str
    idea: IdeaOut
