from ...domain.entities import Role, User
from ..errors import InvalidCredentials
from .register_user import IPasswordHasher, IUserRepository


class AuthenticateUser:
    """Checks a username/password pair against users of a single role."""

    def __init__(self, repo: IUserRepository, hasher: IPasswordHasher):
        self.repo = repo
        self.hasher = hasher

    def execute(self, username: str, password: str, role: Role) -> User:
        user = self.repo.get_by_username(username, role=role)
        if not user or not self.hasher.verify(password, user.password_hash):
            raise InvalidCredentials(f"Invalid {role.value} credentials")
        return user
