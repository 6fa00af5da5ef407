from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
import logging

from product_catalog.api.deps import get_token_service
from product_catalog.database import get_db
from product_catalog.schemas.auth import RegisterRequest, LoginRequest, LoginResponse
from product_catalog.services.token_service import TokenService
from product_catalog.services.user_service import UserService, RegistrationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/Auth", tags=["Auth"])


@router.post(
    "/Register",
    response_model=str,
    summary="Register a user",
    description="Create an account and attach the requested roles."
)
def register(
    request: RegisterRequest,
    db: Session = Depends(get_db)
):
    """
    Register a new account.

    - **username**: Login name, also stored as the email (required)
    - **password**: Must satisfy the password policy (required)
    - **roles**: Any of `Reader`, `Writer`

    Every failure answers the same 400 so callers can't tell a taken
    username from a weak password or an unknown role. Success is only
    reported once at least one role is attached; an account registered
    without roles is still created.
    """
    service = UserService(db)
    not_added = HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail="User was not added"
    )

    try:
        service.register(request.username, request.password, request.roles)
    except RegistrationError as e:
        logger.warning(f"Registration of {request.username} failed: {e}")
        raise not_added

    if not request.roles:
        logger.warning(f"User {request.username} registered without roles")
        raise not_added

    return "User was Registered"


@router.post(
    "/Login",
    response_model=LoginResponse,
    summary="Log in",
    description="Exchange a username and password for a signed bearer token."
)
def login(
    request: LoginRequest,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service)
):
    """Verify credentials and issue a token carrying the user's roles."""
    service = UserService(db)
    verified = service.verify(request.username, request.password)

    if verified is None:
        logger.warning(f"Failed login for {request.username}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username or Password incorrect"
        )

    user, roles = verified
    logger.info(f"User {user.username} logged in with roles {[r.value for r in roles]}")
    return LoginResponse(jwt_token=tokens.issue(user, roles))
