from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ....application.dto import RegisterUserInput
from ....application.errors import AccessDenied, InvalidCredentials, QuotaExceeded
from ....application.use_cases.authenticate_user import AuthenticateUser
from ....application.use_cases.device_approval import DeviceApprovalEngine
from ....application.use_cases.register_user import RegisterUser
from ....application.use_cases.reset_password import IMailer, RequestPasswordReset, ResetPassword
from ....config import Settings, get_settings
from ....domain.entities import Role
from ....infrastructure.db import get_db
from ....infrastructure.mailer import get_mailer
from ....infrastructure.metrics import device_login_attempts_total
from ....infrastructure.repositories import UserRepository
from ....infrastructure.security import PasswordHasher, TokenIssuer
from ..authz import get_token_issuer, get_user_id
from ..deps import get_device_engine
from ..schemas import (
    AdminRegisterReq, ForgotPasswordReq, LoginReq, MessageResp, RegisterResp, ResetPasswordReq,
    StudentLoginReq, StudentLoginResp, StudentRegisterReq, TokenResp, UserResp,
)

router = APIRouter(prefix="/api/auth", tags=["auth"])

@router.get("/health")
def health():
    return {"status": "ok"}


def _user_resp(user) -> UserResp:
    return UserResp(id=user.id, username=user.username, role=user.role, name=user.name, email=user.email)


@router.post("/admin-register", response_model=RegisterResp, status_code=status.HTTP_201_CREATED)
def admin_register(payload: AdminRegisterReq, db: Session = Depends(get_db)):
    uc = RegisterUser(repo=UserRepository(db), hasher=PasswordHasher())
    user = uc.execute(RegisterUserInput(payload.username, payload.password), role=Role.ADMIN)
    return RegisterResp(message="Admin created successfully", user=_user_resp(user))


@router.post("/admin-login", response_model=TokenResp)
def admin_login(
    payload: LoginReq,
    db: Session = Depends(get_db),
    tokens: TokenIssuer = Depends(get_token_issuer),
):
    user = AuthenticateUser(UserRepository(db), PasswordHasher()).execute(
        payload.username, payload.password, Role.ADMIN
    )
    return TokenResp(token=tokens.issue_access_token(str(user.id), user.role.value))


@router.post("/student-register", response_model=RegisterResp, status_code=status.HTTP_201_CREATED)
def student_register(payload: StudentRegisterReq, db: Session = Depends(get_db)):
    uc = RegisterUser(repo=UserRepository(db), hasher=PasswordHasher())
    user = uc.execute(
        RegisterUserInput(payload.username, payload.password, name=payload.name, email=str(payload.email)),
        role=Role.STUDENT,
    )
    return RegisterResp(message="Student registered successfully", user=_user_resp(user))


@router.post("/student-login", response_model=StudentLoginResp)
def student_login(
    payload: StudentLoginReq,
    db: Session = Depends(get_db),
    engine: DeviceApprovalEngine = Depends(get_device_engine),
):
    try:
        user = AuthenticateUser(UserRepository(db), PasswordHasher()).execute(
            payload.username, payload.password, Role.STUDENT
        )
        outcome = engine.attempt_login(user, payload.device_id, payload.device_info)
    except InvalidCredentials:
        device_login_attempts_total.labels(outcome="invalid_credentials").inc()
        raise
    except AccessDenied:
        device_login_attempts_total.labels(outcome="denied").inc()
        raise
    except QuotaExceeded:
        device_login_attempts_total.labels(outcome="quota_exceeded").inc()
        raise
    device_login_attempts_total.labels(outcome=outcome.status.value).inc()
    return StudentLoginResp(token=outcome.token, message=outcome.message,
                            log_id=outcome.log_id, status=outcome.status)


@router.post("/student-forgot-password", response_model=MessageResp)
def student_forgot_password(
    payload: ForgotPasswordReq,
    db: Session = Depends(get_db),
    tokens: TokenIssuer = Depends(get_token_issuer),
    mailer: IMailer = Depends(get_mailer),
    config: Settings = Depends(get_settings),
):
    RequestPasswordReset(UserRepository(db), tokens, mailer, config.FRONTEND_URL).execute(str(payload.email))
    # same answer whether or not the address belongs to a student
    return MessageResp(message="If a student account exists for this email, a reset link has been sent")


@router.post("/student-reset-password/{token}", response_model=MessageResp)
def student_reset_password(
    token: str,
    payload: ResetPasswordReq,
    db: Session = Depends(get_db),
    tokens: TokenIssuer = Depends(get_token_issuer),
):
    ResetPassword(UserRepository(db), PasswordHasher(), tokens).execute(token, payload.password)
    return MessageResp(message="Password updated successfully")


@router.get("/profile", response_model=UserResp)
def profile(user_id: int = Depends(get_user_id), db: Session = Depends(get_db)):
    user = UserRepository(db).get(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return _user_resp(user)
