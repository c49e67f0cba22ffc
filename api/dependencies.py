"""API Dependencies - Context and Authentication"""
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from api.schemas import TokenData
from bootstrap import AppContext
from domain.auth import User
from domain.enums import Role

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")


def get_context(request: Request) -> AppContext:
    return request.app.state.context


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    context: AppContext = Depends(get_context),
):
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    username = context.security.decode_access_token(token)
    if username is None:
        raise credentials_exception
    token_data = TokenData(username=username)

    user = await context.users.find_by_username(token_data.username)
    if user is None:
        raise credentials_exception
    return user


async def get_current_active_user(current_user: User = Depends(get_current_user)):
    if current_user.disabled:
        raise HTTPException(status_code=400, detail="Inactive user")
    return current_user


def require_roles(*roles: Role):
    """Dependency admitting only principals holding one of ``roles``"""
    allowed = frozenset(roles)

    async def checker(current_user: User = Depends(get_current_active_user)):
        if current_user.role not in allowed:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized")
        return current_user

    return checker
