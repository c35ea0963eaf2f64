"""
Registration, login/logout and token verification endpoints.
"""
from fastapi import APIRouter, Depends, HTTPException, status, Request, Response
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
import time
from hoarding_app.api.deps import get_db, get_current_user
from hoarding_app.config import AUTH_SETTINGS
from hoarding_app.models.db import User
from hoarding_app.models.schemas.auth import UserRegister, UserLogin, AuthIdentity
from hoarding_app.models.schemas.base import ResponseBase
from hoarding_app.security import get_password_hash, verify_password, create_access_token
from hoarding_app.utils import get_logger, log_business_event, log_performance

router = APIRouter()
logger = get_logger(__name__)

@router.post(
    "/register",
    response_model=AuthIdentity,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new owner or advertiser"
)
async def register(
    payload: UserRegister,
    request: Request,
    db: Session = Depends(get_db)
) -> AuthIdentity:
    start_time = time.time()
    request_id = request.headers.get("X-Request-ID", "unknown")

    logger.info(
        "User registration started",
        user_email=payload.email,
        user_role=payload.registering_as.value,
        request_id=request_id
    )

    try:
        existing = db.query(User).filter(User.email == payload.email).first()
        if existing:
            logger.warning(
                "Registration failed: duplicate email",
                email=payload.email,
                existing_user_id=existing.id,
                request_id=request_id
            )
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="User with this email already exists"
            )

        user = User(
            name=payload.name,
            email=payload.email,
            password_hash=get_password_hash(payload.password),
            phone=payload.phone,
            gov_id_type=payload.gov_id_type,
            gov_id_no=payload.gov_id_no,
            role=payload.registering_as,
            is_active=True,
        )
        db.add(user)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.warning("Registration failed: concurrent duplicate email", email=payload.email, request_id=request_id)
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="User with this email already exists"
            )
        db.refresh(user)

        log_business_event(
            event_type="user_registered",
            details={"user_email": user.email, "user_role": user.role.value},
            user_id=user.id,
            request_id=request_id
        )
        duration_ms = (time.time() - start_time) * 1000
        log_performance(operation="register", duration_ms=duration_ms)

        return AuthIdentity(id=user.id, role=user.role)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(
            "Registration failed with unexpected error",
            error=str(e),
            request_id=request_id,
            exc_info=True
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error during registration"
        )

@router.post(
    "/login",
    response_model=ResponseBase,
    summary="Log in and receive the session cookie"
)
async def login(
    payload: UserLogin,
    request: Request,
    response: Response,
    db: Session = Depends(get_db)
) -> ResponseBase:
    request_id = request.headers.get("X-Request-ID", "unknown")

    user = db.query(User).filter(User.email == payload.email).first()
    # Same answer for unknown email, wrong password and wrong role
    if (
        user is None
        or not user.is_active
        or not verify_password(payload.password, user.password_hash)
        or user.role != payload.login_as
    ):
        logger.warning(
            "Login failed",
            email=payload.email,
            login_as=payload.login_as.value,
            request_id=request_id
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials"
        )

    token = create_access_token(user.id, user.role)
    response.set_cookie(
        key=str(AUTH_SETTINGS["cookie_name"]),
        value=token,
        httponly=True,
        secure=bool(AUTH_SETTINGS["cookie_secure"]),
        samesite="lax",
        max_age=int(AUTH_SETTINGS["token_expire_days"]) * 24 * 60 * 60,
        path="/",
    )

    log_business_event(
        event_type="user_logged_in",
        details={"user_role": user.role.value},
        user_id=user.id,
        request_id=request_id
    )

    data = {"id": user.id, "name": user.name, "role": user.role.value}
    if payload.bearer:
        data.update(access_token=token, token_type="bearer")
    return ResponseBase(success=True, message="Login successful", data=data)

@router.post("/logout", response_model=ResponseBase, summary="Clear the session cookie")
async def logout(response: Response) -> ResponseBase:
    response.delete_cookie(key=str(AUTH_SETTINGS["cookie_name"]), path="/")
    return ResponseBase(success=True, message="Logged out")

@router.get("/verify", response_model=AuthIdentity, summary="Identify the current session")
async def verify(current_user: User = Depends(get_current_user)) -> AuthIdentity:
    return AuthIdentity(id=current_user.id, role=current_user.role)
