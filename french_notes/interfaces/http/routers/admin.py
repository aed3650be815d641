import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ....application.errors import DomainError, NotFound
from ....application.use_cases.device_approval import DeviceApprovalEngine
from ....infrastructure.db import get_db
from ....infrastructure.metrics import device_decisions_total
from ....infrastructure.repositories import LoginLogRepository, UserRepository
from ..authz import require_admin
from ..deps import get_device_engine
from ..schemas import DecisionReq, DecisionResp, LoginLogOut, MessageResp, ResetLogsResp, UserResp

logger = structlog.get_logger()

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/users", response_model=list[UserResp])
def list_students(db: Session = Depends(get_db)):
    return [UserResp(id=u.id, username=u.username, role=u.role, name=u.name, email=u.email)
            for u in UserRepository(db).list_students()]


@router.delete("/users/{user_id}", response_model=MessageResp)
def delete_user(user_id: int, db: Session = Depends(get_db)):
    if not UserRepository(db).delete(user_id):
        raise NotFound("User not found")
    logger.info("user_deleted", user_id=user_id)
    return MessageResp(message="User removed successfully")


@router.post("/users/{user_id}/reset-logs", response_model=ResetLogsResp)
def reset_user_logs(user_id: int, db: Session = Depends(get_db)):
    if UserRepository(db).get(user_id) is None:
        raise NotFound("User not found")
    deleted = LoginLogRepository(db).delete_for_user(user_id)
    logger.info("user_logs_reset", user_id=user_id, deleted=deleted)
    return ResetLogsResp(message="User logs reset successfully", deleted=deleted)


@router.get("/login-logs", response_model=list[LoginLogOut])
def list_login_logs(db: Session = Depends(get_db)):
    return LoginLogRepository(db).list_with_users()


@router.post("/login-logs/{log_id}", response_model=DecisionResp)
def decide_login(
    log_id: int,
    payload: DecisionReq,
    engine: DeviceApprovalEngine = Depends(get_device_engine),
):
    try:
        entry = engine.decide(log_id, payload.status)
    except DomainError as e:
        decision = payload.status if payload.status in ("approved", "denied") else "invalid"
        device_decisions_total.labels(decision=decision, result=type(e).__name__).inc()
        raise
    device_decisions_total.labels(decision=entry.status.value, result="ok").inc()
    return DecisionResp(message=f"Login {entry.status.value}", log_id=entry.id, status=entry.status)
