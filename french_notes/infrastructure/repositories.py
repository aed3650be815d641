from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from .models import ContentORM, IdeaORM, LoginLogORM, UserORM
from ..domain.entities import ContentType, DeviceStatus, LoginLog, Role, User
from ..application.use_cases.register_user import IUserRepository
from ..application.use_cases.device_approval import ILoginLogRepository, LedgerConflict
from ..application.use_cases.catalog import ICatalogRepository


def to_domain(u: UserORM) -> User:
    return User(id=u.id, username=u.username, password_hash=u.password_hash,
                role=Role(u.role), name=u.name, email=u.email)


def log_to_domain(row: LoginLogORM) -> LoginLog:
    return LoginLog(id=row.id, user_id=row.user_id, username=row.username,
                    device_id=row.device_id, device_info=row.device_info,
                    status=DeviceStatus(row.status),
                    created_at=row.created_at, updated_at=row.updated_at)


class UserRepository(IUserRepository):
    def __init__(self, db: Session): self.db = db

    def get(self, user_id: int) -> User | None:
        row = self.db.get(UserORM, user_id)
        return to_domain(row) if row else None

    def get_by_username(self, username: str, role: Role | None = None) -> User | None:
        q = self.db.query(UserORM).filter(UserORM.username == username)
        if role is not None:
            q = q.filter(UserORM.role == role)
        row = q.first()
        return to_domain(row) if row else None

    def get_by_email(self, email: str, role: Role | None = None) -> User | None:
        q = self.db.query(UserORM).filter(UserORM.email == email)
        if role is not None:
            q = q.filter(UserORM.role == role)
        row = q.first()
        return to_domain(row) if row else None

    def create(self, username: str, password_hash: str, role: Role,
               name: str | None = None, email: str | None = None) -> User:
        row = UserORM(username=username, password_hash=password_hash, role=role, name=name, email=email)
        self.db.add(row); self.db.commit(); self.db.refresh(row)
        return to_domain(row)

    def set_password(self, user_id: int, password_hash: str) -> None:
        row = self.db.get(UserORM, user_id)
        row.password_hash = password_hash
        self.db.commit()

    def list_students(self) -> list[User]:
        rows = self.db.query(UserORM).filter(UserORM.role == Role.STUDENT).order_by(UserORM.id).all()
        return [to_domain(r) for r in rows]

    def delete(self, user_id: int) -> bool:
        row = self.db.get(UserORM, user_id)
        if row is None:
            return False
        # bulk delete first so the ledger is cleared even without FK cascades (SQLite)
        self.db.execute(delete(LoginLogORM).where(LoginLogORM.user_id == user_id))
        self.db.expire(row, ["login_logs"])
        self.db.delete(row)
        self.db.commit()
        return True


class LoginLogRepository(ILoginLogRepository):
    """Device ledger access. Writes are flushed, never committed; the caller owns the transaction."""

    def __init__(self, db: Session): self.db = db

    def get(self, log_id: int) -> LoginLog | None:
        row = self.db.get(LoginLogORM, log_id)
        return log_to_domain(row) if row else None

    def find_for_device(self, user_id: int, device_id: str) -> LoginLog | None:
        row = self.db.execute(
            select(LoginLogORM).where(LoginLogORM.user_id == user_id, LoginLogORM.device_id == device_id)
        ).scalar_one_or_none()
        return log_to_domain(row) if row else None

    def lock_owner(self, user_id: int) -> None:
        # SELECT ... FOR UPDATE on the user row serialises quota checks per student
        self.db.execute(select(UserORM.id).where(UserORM.id == user_id).with_for_update()).first()

    def count_pending(self, user_id: int) -> int:
        q = select(func.count()).select_from(LoginLogORM).where(
            LoginLogORM.user_id == user_id, LoginLogORM.status == DeviceStatus.PENDING
        )
        return self.db.execute(q).scalar_one()

    def count_approved(self, user_id: int, exclude_id: int | None = None) -> int:
        q = select(func.count()).select_from(LoginLogORM).where(
            LoginLogORM.user_id == user_id, LoginLogORM.status == DeviceStatus.APPROVED
        )
        if exclude_id is not None:
            q = q.where(LoginLogORM.id != exclude_id)
        return self.db.execute(q).scalar_one()

    def add(self, user_id: int, username: str, device_id: str, device_info: str,
            status: DeviceStatus) -> LoginLog:
        row = LoginLogORM(user_id=user_id, username=username, device_id=device_id,
                          device_info=device_info or "", status=status)
        self.db.add(row)
        try:
            self.db.flush()
        except IntegrityError as e:
            self.db.rollback()
            raise LedgerConflict(device_id) from e
        return log_to_domain(row)

    def set_status(self, log_id: int, status: DeviceStatus) -> LoginLog | None:
        # hits the database, so a row deleted by another transaction reads as gone
        row = self.db.execute(
            select(LoginLogORM).where(LoginLogORM.id == log_id).with_for_update()
        ).scalar_one_or_none()
        if row is None:
            return None
        row.status = status
        self.db.flush()
        return log_to_domain(row)

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()

    def list_with_users(self) -> list[LoginLogORM]:
        q = (select(LoginLogORM)
             .options(joinedload(LoginLogORM.user))
             .order_by(LoginLogORM.created_at.desc(), LoginLogORM.id.desc()))
        return list(self.db.execute(q).scalars().all())

    def delete_for_user(self, user_id: int) -> int:
        result = self.db.execute(delete(LoginLogORM).where(LoginLogORM.user_id == user_id))
        self.db.commit()
        return result.rowcount or 0


class ContentRepository(ICatalogRepository):
    def __init__(self, db: Session): self.db = db

    def list(self, content_type: ContentType | None = None) -> list[ContentORM]:
        q = self.db.query(ContentORM)
        if content_type is not None:
            q = q.filter(ContentORM.type == content_type)
        return q.order_by(ContentORM.created_at.desc(), ContentORM.id.desc()).all()

    def get(self, row_id: int) -> ContentORM | None:
        return self.db.get(ContentORM, row_id)

    def create(self, **fields) -> ContentORM:
        row = ContentORM(**fields)
        self.db.add(row); self.db.commit(); self.db.refresh(row)
        return row

    def update(self, row_id: int, **fields) -> ContentORM | None:
        row = self.db.get(ContentORM, row_id)
        if row is None:
            return None
        for key, value in fields.items():
            setattr(row, key, value)
        self.db.commit(); self.db.refresh(row)
        return row

    def delete(self, row_id: int) -> bool:
        row = self.db.get(ContentORM, row_id)
        if row is None:
            return False
        self.db.delete(row); self.db.commit()
        return True


class IdeaRepository(ICatalogRepository):
    def __init__(self, db: Session): self.db = db

    def list(self) -> list[IdeaORM]:
        return (self.db.query(IdeaORM)
                .options(joinedload(IdeaORM.submitter))
                .order_by(IdeaORM.created_at.desc(), IdeaORM.id.desc())
                .all())

    def get(self, row_id: int) -> IdeaORM | None:
        return self.db.get(IdeaORM, row_id)

    def create(self, **fields) -> IdeaORM:
        row = IdeaORM(**fields)
        self.db.add(row); self.db.commit(); self.db.refresh(row)
        return row

    def update(self, row_id: int, **fields) -> IdeaORM | None:
        row = self.db.get(IdeaORM, row_id)
        if row is None:
            return None
        for key, value in fields.items():
            setattr(row, key, value)
        self.db.commit(); self.db.refresh(row)
        return row

    def delete(self, row_id: int) -> bool:
        row = self.db.get(IdeaORM, row_id)
        if row is None:
            return False
        self.db.delete(row); self.db.commit()
        return True
