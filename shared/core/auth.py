from typing import Optional
from fastapi import status, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from shared.models.users import Users
from shared.utils.app_status_code import AppStatusCode
from shared.utils.enums import UserRole, UserStatus
from shared.core.config import settings
from shared.helpers.json_response_helper import error_response
from shared.core.schemas import UserToken
from shared.core.database import get_rental_db as get_db

security = HTTPBearer()


def verify_token(token: str) -> Optional[UserToken]:
    """Verify and decode a JWT token issued by the auth service."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET,
                             algorithms=[settings.JWT_ALGORITHM])
        return UserToken(**payload)
    except (JWTError, ValueError):
        return error_response(
            message="Invalid or expired token",
            status_code=str(AppStatusCode.AUTHENTICATION_TOKEN_INVALID),
            http_status=status.HTTP_401_UNAUTHORIZED
        )


def validate_current_token(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
):
    user_data = verify_token(credentials.credentials)

    user = db.query(Users).filter(Users.id == user_data.user_id).first()

    if not user:
        return error_response(
            message="User not found",
            status_code=str(AppStatusCode.AUTHENTICATION_USER_INVALID),
            http_status=404
        )

    if user.status.lower() != UserStatus.ACTIVE.value:
        return error_response(
            message="User is not active. Access denied",
            status_code=str(AppStatusCode.AUTHENTICATION_USER_INACTIVE),
            http_status=403
        )

    # The role stored on the account wins over whatever the token claims
    user_data.role = user.role
    user_data.name = user.full_name
    user_data.status = user.status
    return user_data


def allow_admin(current_user: UserToken = Depends(validate_current_token)):
    if current_user.role != UserRole.ADMIN.value:
        return error_response(
            message="Access forbidden: Admins only",
            status_code=str(AppStatusCode.UNAUTHORIZED_ACTION),
            http_status=403
        )

    return current_user


def allow_owner_or_admin(current_user: UserToken = Depends(validate_current_token)):
    if current_user.role not in (UserRole.OWNER.value, UserRole.ADMIN.value):
        return error_response(
            message="Access forbidden: Owners and admins only",
            status_code=str(AppStatusCode.UNAUTHORIZED_ACTION),
            http_status=403
        )

    return current_user
