from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from ...application.errors import TokenError
from ...infrastructure.security import TokenIssuer

bearer = HTTPBearer(auto_error=False)
token_issuer = TokenIssuer()

def get_token_issuer() -> TokenIssuer:
    return token_issuer

def _unauthenticated(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail,
                         headers={"WWW-Authenticate": "Bearer"})

def get_claims(creds: HTTPAuthorizationCredentials | None = Depends(bearer),
               tokens: TokenIssuer = Depends(get_token_issuer)) -> dict:
    if creds is None:
        raise _unauthenticated("No token provided")
    try:
        return tokens.verify(creds.credentials)
    except TokenError:
        raise _unauthenticated("Token is not valid or expired")

def require_admin(claims: dict = Depends(get_claims)) -> dict:
    if claims.get("role") != "admin":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access only")
    return claims

def get_user_id(claims: dict = Depends(get_claims)) -> int:
    try:
        return int(claims["sub"])
    except (KeyError, ValueError):
        raise _unauthenticated("Token is not valid or expired")
