import structlog

from ...domain.entities import Role
from ..errors import InvalidInput, NotFound, TokenError, UpstreamFailure
from .register_user import IPasswordHasher, IUserRepository

logger = structlog.get_logger()


class IResetTokens:
    reset_ttl_minutes: int
    def issue_reset_token(self, identity: str) -> str: ...
    def verify(self, token: str, expected_type: str = "access") -> dict: ...


class IMailer:
    def send_password_reset(self, to: str, name: str, username: str,
                            reset_link: str, ttl_minutes: int) -> None: ...


class RequestPasswordReset:
    """Mails a short-lived reset link to a student.

    Unknown addresses and mail transport failures are logged and otherwise
    ignored, so the caller answers the same way whether or not the account
    exists.
    """

    def __init__(self, repo: IUserRepository, tokens: IResetTokens, mailer: IMailer, frontend_url: str):
        self.repo = repo
        self.tokens = tokens
        self.mailer = mailer
        self.frontend_url = frontend_url.rstrip("/")

    def execute(self, email: str) -> None:
        user = self.repo.get_by_email(email, role=Role.STUDENT)
        if user is None:
            logger.info("password_reset_requested", found=False)
            return
        token = self.tokens.issue_reset_token(str(user.id))
        try:
            self.mailer.send_password_reset(
                to=user.email,
                name=user.name or user.username,
                username=user.username,
                reset_link=f"{self.frontend_url}/reset-password/{token}",
                ttl_minutes=self.tokens.reset_ttl_minutes,
            )
        except UpstreamFailure as e:
            logger.error("password_reset_mail_failed", user_id=user.id, error=e.detail)
            return
        logger.info("password_reset_requested", found=True, user_id=user.id)


class ResetPassword:
    def __init__(self, repo: IUserRepository, hasher: IPasswordHasher, tokens: IResetTokens):
        self.repo = repo
        self.hasher = hasher
        self.tokens = tokens

    def execute(self, token: str, password: str) -> None:
        if not password:
            raise InvalidInput("Password is required")
        try:
            claims = self.tokens.verify(token, expected_type="reset")
        except TokenError as e:
            logger.info("password_reset_rejected", reason=type(e).__name__)
            raise InvalidInput("Invalid or expired token")

        user = self.repo.get(int(claims["sub"]))
        if user is None or user.role is not Role.STUDENT:
            raise NotFound("Invalid link or student not found")
        self.repo.set_password(user.id, self.hasher.hash(password))
        logger.info("password_reset_completed", user_id=user.id)
