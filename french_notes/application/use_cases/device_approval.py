import structlog

from ...domain.entities import DeviceStatus, LoginLog, User
from ..dto import LoginOutcome
from ..errors import AccessDenied, InvalidInput, NotFound, QuotaExceeded

logger = structlog.get_logger()

APPROVAL_MODES = ("auto", "manual")


class LedgerConflict(Exception):
    """A (user, device) row already exists; raised on a lost insert race."""


class ILoginLogRepository:
    def get(self, log_id: int) -> LoginLog | None: ...
    def find_for_device(self, user_id: int, device_id: str) -> LoginLog | None: ...
    def lock_owner(self, user_id: int) -> None: ...
    def count_approved(self, user_id: int, exclude_id: int | None = None) -> int: ...
    def count_pending(self, user_id: int) -> int: ...
    def add(self, user_id: int, username: str, device_id: str, device_info: str,
            status: DeviceStatus) -> LoginLog: ...
    def set_status(self, log_id: int, status: DeviceStatus) -> LoginLog | None: ...
    def commit(self) -> None: ...
    def rollback(self) -> None: ...


class ITokenIssuer:
    def issue_access_token(self, identity: str, role: str) -> str: ...


class DeviceApprovalEngine:
    """Decides student logins per device and admin approve/deny actions.

    Every count-then-write sequence runs after ``lock_owner`` inside the
    transaction that performs the write, so two concurrent requests for the
    same student cannot both observe a free slot. The unique (user, device)
    constraint backs up the device lookup.

    In manual mode only approved rows count towards ``quota``; ``pending_limit``
    separately caps how many requests may wait for an admin at once.
    """

    def __init__(self, ledger: ILoginLogRepository, tokens: ITokenIssuer,
                 mode: str = "auto", quota: int = 2, pending_limit: int | None = None):
        if mode not in APPROVAL_MODES:
            raise ValueError(f"Unknown login approval mode: {mode}")
        self.ledger = ledger
        self.tokens = tokens
        self.mode = mode
        self.quota = quota
        self.pending_limit = pending_limit

    def attempt_login(self, user: User, device_id: str, device_info: str = "") -> LoginOutcome:
        entry = self.ledger.find_for_device(user.id, device_id)
        if entry is not None:
            return self._resolve_existing(user, entry)

        try:
            entry = self._register_device(user, device_id, device_info)
        except LedgerConflict:
            entry = self.ledger.find_for_device(user.id, device_id)
            if entry is None:
                raise
            return self._resolve_existing(user, entry)

        if entry.status is DeviceStatus.APPROVED:
            logger.info("device_login", user_id=user.id, device_id=device_id, outcome="new_device_approved")
            return self._approved(user, entry, "Login successful (new device approved)")
        logger.info("device_login", user_id=user.id, device_id=device_id, outcome="new_device_pending")
        return LoginOutcome(DeviceStatus.PENDING, entry.id, "Login request pending admin approval")

    def decide(self, log_id: int, decision: str) -> LoginLog:
        try:
            status = DeviceStatus(decision)
        except ValueError:
            status = None
        if status not in (DeviceStatus.APPROVED, DeviceStatus.DENIED):
            raise InvalidInput("Invalid status value")

        entry = self.ledger.get(log_id)
        if entry is None:
            raise NotFound("Login log not found")

        try:
            self.ledger.lock_owner(entry.user_id)
            if status is DeviceStatus.APPROVED:
                others = self.ledger.count_approved(entry.user_id, exclude_id=entry.id)
                if others >= self.quota:
                    raise QuotaExceeded(
                        f"Student already has {self.quota} approved devices. Cannot approve more."
                    )
            updated = self.ledger.set_status(entry.id, status)
            if updated is None:
                raise NotFound("Login log not found")
            self.ledger.commit()
        except Exception:
            self.ledger.rollback()
            raise

        logger.info("device_decision", log_id=entry.id, user_id=entry.user_id,
                    previous=entry.status.value, decision=status.value)
        return updated

    def _register_device(self, user: User, device_id: str, device_info: str) -> LoginLog:
        try:
            self.ledger.lock_owner(user.id)
            if self.ledger.find_for_device(user.id, device_id) is not None:
                raise LedgerConflict(device_id)
            approved = self.ledger.count_approved(user.id)
            if approved >= self.quota:
                logger.info("device_login", user_id=user.id, device_id=device_id,
                            outcome="quota_exceeded", approved=approved)
                raise QuotaExceeded(
                    f"Login not permitted. Maximum {self.quota} devices are allowed. "
                    "If you made reset on device contact admin."
                )
            if self.mode == "manual" and self.pending_limit is not None:
                pending = self.ledger.count_pending(user.id)
                if pending >= self.pending_limit:
                    logger.info("device_login", user_id=user.id, device_id=device_id,
                                outcome="pending_limit", pending=pending)
                    raise QuotaExceeded(
                        "Too many device requests are awaiting admin approval "
                        f"(maximum {self.pending_limit}). Please contact admin."
                    )
            status = DeviceStatus.APPROVED if self.mode == "auto" else DeviceStatus.PENDING
            entry = self.ledger.add(user.id, user.username, device_id, device_info, status)
            self.ledger.commit()
            return entry
        except Exception:
            self.ledger.rollback()
            raise

    def _resolve_existing(self, user: User, entry: LoginLog) -> LoginOutcome:
        if entry.status is DeviceStatus.APPROVED:
            logger.info("device_login", user_id=user.id, device_id=entry.device_id, outcome="approved")
            return self._approved(user, entry, "Login successful (approved device)")
        if entry.status is DeviceStatus.DENIED:
            logger.info("device_login", user_id=user.id, device_id=entry.device_id, outcome="denied")
            raise AccessDenied("Access denied for this device. Please contact admin.")
        logger.info("device_login", user_id=user.id, device_id=entry.device_id, outcome="pending")
        return LoginOutcome(DeviceStatus.PENDING, entry.id, "Device login is still pending admin approval")

    def _approved(self, user: User, entry: LoginLog, message: str) -> LoginOutcome:
        token = self.tokens.issue_access_token(str(user.id), user.role.value)
        return LoginOutcome(DeviceStatus.APPROVED, entry.id, message, token=token)
