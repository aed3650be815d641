from ...domain.entities import Role, User
from ..dto import RegisterUserInput
from ..errors import Conflict, InvalidInput


class IUserRepository:
    def get(self, user_id: int) -> User | None: ...
    def get_by_username(self, username: str, role: Role | None = None) -> User | None: ...
    def get_by_email(self, email: str, role: Role | None = None) -> User | None: ...
    def create(self, username: str, password_hash: str, role: Role,
               name: str | None = None, email: str | None = None) -> User: ...
    def set_password(self, user_id: int, password_hash: str) -> None: ...


class IPasswordHasher:
    def hash(self, plain: str) -> str: ...
    def verify(self, plain: str, hashed: str) -> bool: ...


class RegisterUser:
    def __init__(self, repo: IUserRepository, hasher: IPasswordHasher):
        self.repo = repo
        self.hasher = hasher

    def execute(self, data: RegisterUserInput, role: Role = Role.STUDENT) -> User:
        username = data.username.strip()
        if not username or not data.password:
            raise InvalidInput("Username and password are required")
        if role is Role.STUDENT:
            if not data.email or "@" not in data.email:
                raise InvalidInput("Invalid email")
            if self.repo.get_by_username(username) or self.repo.get_by_email(data.email):
                raise Conflict("Username or email already exists")
        elif self.repo.get_by_username(username):
            raise Conflict("Username already exists")
        pwd_hash = self.hasher.hash(data.password)
        return self.repo.create(username, pwd_hash, role, name=data.name, email=data.email)
