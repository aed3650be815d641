from passlib.context import CryptContext
from datetime import datetime, timedelta, timezone
from jose import jwt, JWTError, ExpiredSignatureError
from ..application.errors import TokenExpired, TokenMalformed, TokenSignatureInvalid
from ..config import Settings, settings

ACCESS = "access"
RESET = "reset"


def build_context(rounds: int) -> CryptContext:
    return CryptContext(
        schemes=["bcrypt_sha256"],
        deprecated="auto",
        bcrypt_sha256__default_rounds=rounds,
        bcrypt_sha256__truncate_error=False,
    )


pwd = build_context(settings.BCRYPT_ROUNDS)


class PasswordHasher:
    def __init__(self, context: CryptContext = pwd): self.context = context
    def hash(self, plain: str) -> str: return self.context.hash(plain)
    def verify(self, plain: str, hashed: str) -> bool: return self.context.verify(plain, hashed)


class TokenIssuer:
    """Signs and verifies the stateless bearer tokens.

    Access tokens carry ``sub`` and ``role``; reset tokens carry only ``sub``
    and a short expiry. The ``typ`` claim keeps the two from standing in for
    each other.
    """

    def __init__(self, config: Settings = settings):
        self.secret = config.SECRET_KEY
        self.algorithm = config.JWT_ALGORITHM
        self.access_ttl_minutes = config.ACCESS_TOKEN_TTL_MINUTES
        self.reset_ttl_minutes = config.RESET_TOKEN_TTL_MINUTES

    def issue(self, identity: str, role: str | None, ttl: timedelta, token_type: str = ACCESS) -> str:
        now = datetime.now(timezone.utc)
        payload = {"sub": identity, "typ": token_type, "iat": now, "exp": now + ttl}
        if role is not None:
            payload["role"] = role
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def issue_access_token(self, identity: str, role: str) -> str:
        return self.issue(identity, role, timedelta(minutes=self.access_ttl_minutes))

    def issue_reset_token(self, identity: str) -> str:
        return self.issue(identity, None, timedelta(minutes=self.reset_ttl_minutes), token_type=RESET)

    def verify(self, token: str, expected_type: str = ACCESS) -> dict:
        try:
            jwt.get_unverified_claims(token)
        except JWTError as e:
            raise TokenMalformed(str(e)) from e
        try:
            claims = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except ExpiredSignatureError as e:
            raise TokenExpired(str(e)) from e
        except JWTError as e:
            raise TokenSignatureInvalid(str(e)) from e
        if not claims.get("sub") or claims.get("typ") != expected_type:
            raise TokenMalformed(f"Not a valid {expected_type} token")
        if expected_type == ACCESS and not claims.get("role"):
            raise TokenMalformed("No role claim")
        return claims
