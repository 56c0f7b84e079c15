from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from bustravel.config import settings
from bustravel.database import get_db
from bustravel.auth.utils import verify_token
from bustravel.auth.service import UserService
from bustravel.auth.roles import Capability, has_capability
from bustravel.models import User

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_PREFIX}/auth/login")

def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> User:
    """Get current authenticated user"""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    token_data = verify_token(token, credentials_exception)

    # The stored role wins over the one in the token so role changes apply immediately
    user = UserService.get_user_by_id(db, user_id=token_data["user_id"])
    if user is None:
        raise credentials_exception

    return user

def require_capability(capability: Capability):
    """Build a dependency that admits only users whose role grants the capability"""
    def dependency(current_user: User = Depends(get_current_user)) -> User:
        if not has_capability(current_user.role, capability):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"{current_user.role.value.capitalize()} accounts may not {capability.value.replace('_', ' ')}"
            )
        return current_user
    return dependency
