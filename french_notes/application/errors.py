class DomainError(Exception):
    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class InvalidInput(DomainError):
    status_code = 400


class Conflict(DomainError):
    status_code = 400


class InvalidCredentials(DomainError):
    status_code = 401


class AccessDenied(DomainError):
    status_code = 403


class QuotaExceeded(DomainError):
    status_code = 403


class NotFound(DomainError):
    status_code = 404


class UpstreamFailure(DomainError):
    """A media host or mail server call failed; the request is aborted."""
    status_code = 502


class TokenError(Exception):
    pass


class TokenExpired(TokenError):
    pass


class TokenMalformed(TokenError):
    pass


class TokenSignatureInvalid(TokenError):
    pass
