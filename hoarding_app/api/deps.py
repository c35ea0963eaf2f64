"""
Dependencies for authentication, database sessions, and ownership checks.
"""
from typing import Generator, Optional, List
from fastapi import Depends, HTTPException, status, Request
from sqlalchemy.orm import Session
from hoarding_app import database
from hoarding_app.config import AUTH_SETTINGS
from hoarding_app.models.db import User, Hoarding, Advertisement
from hoarding_app.models.db.enums import UserRole
from hoarding_app.security import decode_token, InvalidTokenError
from hoarding_app.utils import get_logger

logger = get_logger(__name__)

def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.
    Ensures proper session lifecycle management with automatic cleanup.
    
    Yields:
        Session: SQLAlchemy database session
    """
    db = database.SessionLocal()
    try:
        yield db
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        logger.error("Database session error", error=str(e), exc_info=True)
        db.rollback()
        raise
    finally:
        db.close()

def _extract_token(request: Request) -> Optional[str]:
    token = request.cookies.get(str(AUTH_SETTINGS["cookie_name"]))
    if token:
        return token
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return None

def get_current_user(
    request: Request,
    db: Session = Depends(get_db)
) -> User:
    """
    Resolve the user behind the session cookie (or Bearer header).
    
    Raises:
        HTTPException: 401 if the token is missing, invalid, expired, or the
        user no longer exists / is inactive
    """
    token = _extract_token(request)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        payload = decode_token(token)
        user_id = int(payload["sub"])
    except (InvalidTokenError, ValueError) as e:
        logger.warning("Authentication failed: invalid token", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = db.get(User, user_id)
    if not user or not user.is_active:
        logger.warning("Authentication failed: unknown or inactive user", user_id=user_id)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or inactive user",
            headers={"WWW-Authenticate": "Bearer"},
        )

    logger.debug("User authenticated", user_id=user.id, user_role=user.role)
    return user

def require_role(allowed_roles: List[UserRole]):
    """
    Factory function to create a dependency that requires specific user roles.
    
    Args:
        allowed_roles: List of allowed user roles
        
    Returns:
        Dependency function that validates user role
    """
    def role_dependency(
        current_user: User = Depends(get_current_user)
    ) -> User:
        if current_user.role not in allowed_roles:
            logger.warning(
                "Access denied: insufficient role",
                user_id=current_user.id,
                user_role=current_user.role,
                required_roles=[role.value for role in allowed_roles]
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required roles: {[role.value for role in allowed_roles]}"
            )
        return current_user
    
    return role_dependency

require_admin = require_role([UserRole.ADMIN])
require_owner = require_role([UserRole.OWNER])
require_advertiser = require_role([UserRole.ADVERTISER])

def get_owned_hoarding(
    hoarding_id: int,
    current_user: User = Depends(require_owner),
    db: Session = Depends(get_db)
) -> Hoarding:
    """Fetch a hoarding belonging to the current owner; 404 otherwise (existence is not leaked)."""
    hoarding = db.get(Hoarding, hoarding_id)
    if hoarding is None or hoarding.owner_id != current_user.id:
        logger.warning("Hoarding not found for owner", hoarding_id=hoarding_id, user_id=current_user.id)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Hoarding not found")
    return hoarding

def get_owned_advertisement(
    advertisement_id: int,
    current_user: User = Depends(require_advertiser),
    db: Session = Depends(get_db)
) -> Advertisement:
    """Fetch an advertisement belonging to the current advertiser; 404 otherwise."""
    ad = db.get(Advertisement, advertisement_id)
    if ad is None or ad.advertiser_id != current_user.id:
        logger.warning("Advertisement not found for advertiser", advertisement_id=advertisement_id, user_id=current_user.id)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Advertisement not found")
    return ad

def get_pagination_params(
    page: int = 1,
    limit: int = 20
) -> dict:
    """
    Validate and return page-based pagination parameters.
    
    Raises:
        HTTPException: If parameters are out of range
    """
    from hoarding_app.config import REPORT_SETTINGS
    max_limit = REPORT_SETTINGS["max_page_size"]
    if limit < 1 or limit > max_limit:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Limit must be between 1 and {max_limit}"
        )
    if page < 1:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Page must be >= 1"
        )
    return {"page": page, "limit": limit, "offset": (page - 1) * limit}
