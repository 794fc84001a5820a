"""
API v1 routes.

Defines REST endpoints for the account registration API:
- POST /v1/register - Store a pending account and email a verification code
- POST /v1/resend-code - Replace the pending code and email it again
- POST /v1/verify - Confirm the code and mark the account verified
- POST /v1/login - Exchange verified credentials for a session token
- GET /v1/session - Identity carried by a session token

Handlers are plain functions: the account service blocks on the store,
bcrypt and SMTP, so FastAPI runs them in its worker thread pool.
"""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from src.api.dependencies import get_account_service, get_session_email
from src.api.models import (
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterRequest,
    RegisterResponse,
    ResendRequest,
    SessionResponse,
    VerifyRequest,
)
from src.domain.accounts import AccountStateMachine
from src.domain.ports import Profile
from src.domain.results import ErrorKind, OperationResult

router = APIRouter(tags=["v1"])

# Status code and client-facing message per failure kind.
# INTERNAL_ERROR carries no detail.
ERROR_RESPONSES: dict[ErrorKind, tuple[int, str]] = {
    ErrorKind.VALIDATION_FAILED: (status.HTTP_422_UNPROCESSABLE_ENTITY, "Invalid request"),
    ErrorKind.MISSING_EMAIL: (status.HTTP_400_BAD_REQUEST, "Missing email"),
    ErrorKind.MISSING_FIELD: (status.HTTP_400_BAD_REQUEST, "Missing email or verification code"),
    ErrorKind.ALREADY_REGISTERED: (status.HTTP_409_CONFLICT, "User already exists and is verified"),
    ErrorKind.ALREADY_VERIFIED: (status.HTTP_409_CONFLICT, "User already verified"),
    ErrorKind.NOT_FOUND: (status.HTTP_404_NOT_FOUND, "User not found. Please register again."),
    ErrorKind.CODE_EXPIRED: (
        status.HTTP_400_BAD_REQUEST,
        "Code expired. Please request a new code.",
    ),
    ErrorKind.INVALID_CODE: (status.HTTP_400_BAD_REQUEST, "Invalid verification code"),
    ErrorKind.INVALID_CREDENTIALS: (status.HTTP_401_UNAUTHORIZED, "Invalid credentials"),
    ErrorKind.NOT_VERIFIED: (
        status.HTTP_403_FORBIDDEN,
        "Please verify your email before login",
    ),
    ErrorKind.NOTIFICATION_FAILED: (
        status.HTTP_502_BAD_GATEWAY,
        "Failed to send verification email. Please request a new code.",
    ),
    ErrorKind.INTERNAL_ERROR: (status.HTTP_500_INTERNAL_SERVER_ERROR, "Server error"),
}


def error_response(kind: ErrorKind) -> JSONResponse:
    status_code, detail = ERROR_RESPONSES[kind]
    body = ErrorResponse(error=kind.value, detail=detail)
    return JSONResponse(status_code=status_code, content=body.model_dump())


def _failed(result: OperationResult) -> JSONResponse:
    return error_response(result.error or ErrorKind.INTERNAL_ERROR)


def _documented(*kinds: ErrorKind) -> dict[int | str, dict]:
    responses: dict[int | str, dict] = {}
    for kind in kinds:
        status_code, detail = ERROR_RESPONSES[kind]
        responses.setdefault(status_code, {"model": ErrorResponse, "description": detail})
    return responses


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_documented(
        ErrorKind.ALREADY_REGISTERED,
        ErrorKind.NOTIFICATION_FAILED,
        ErrorKind.INTERNAL_ERROR,
    ),
    summary="Register a new user",
    description="Submit account details to begin registration. "
    "A 6-digit verification code will be sent to the provided email.",
)
def register(
    request_data: RegisterRequest,
    service: AccountStateMachine = Depends(get_account_service),
) -> RegisterResponse | JSONResponse:
    """
    Register (or re-register an unverified) user and send a verification code.

    The normalized email is echoed so the client can keep it for /verify.
    """
    profile = Profile(
        college=request_data.college,
        committee=request_data.committee,
        contact=request_data.contact,
    )
    result = service.register(request_data.email, profile, request_data.password)
    if not result.ok:
        return _failed(result)
    return RegisterResponse(
        message="Verification code sent",
        email=result.email or request_data.email,
        expires_in_seconds=service.code_ttl_seconds,
    )


@router.post(
    "/resend-code",
    response_model=MessageResponse,
    responses=_documented(
        ErrorKind.MISSING_EMAIL,
        ErrorKind.NOT_FOUND,
        ErrorKind.ALREADY_VERIFIED,
        ErrorKind.NOTIFICATION_FAILED,
        ErrorKind.INTERNAL_ERROR,
    ),
    summary="Resend verification code",
    description="Issue a fresh code for a pending account. Earlier codes stop working.",
)
def resend_code(
    request_data: ResendRequest,
    service: AccountStateMachine = Depends(get_account_service),
) -> MessageResponse | JSONResponse:
    if not request_data.email:
        return error_response(ErrorKind.MISSING_EMAIL)
    result = service.resend(request_data.email)
    if not result.ok:
        return _failed(result)
    return MessageResponse(message="Verification code resent")


@router.post(
    "/verify",
    response_model=MessageResponse,
    responses=_documented(
        ErrorKind.MISSING_FIELD,
        ErrorKind.NOT_FOUND,
        ErrorKind.ALREADY_VERIFIED,
        ErrorKind.INTERNAL_ERROR,
    ),
    summary="Verify email with code",
    description="Submit the email returned by /register and the code received by email.",
)
def verify(
    request_data: VerifyRequest,
    service: AccountStateMachine = Depends(get_account_service),
) -> MessageResponse | JSONResponse:
    if not request_data.email or not request_data.code:
        return error_response(ErrorKind.MISSING_FIELD)
    result = service.verify(request_data.email, request_data.code)
    if not result.ok:
        return _failed(result)
    return MessageResponse(message="Registration successful")


@router.post(
    "/login",
    response_model=LoginResponse,
    responses=_documented(
        ErrorKind.INVALID_CREDENTIALS,
        ErrorKind.NOT_VERIFIED,
        ErrorKind.INTERNAL_ERROR,
    ),
    summary="Log in",
    description="Exchange email and password of a verified account for a session token.",
)
def login(
    request_data: LoginRequest,
    service: AccountStateMachine = Depends(get_account_service),
) -> LoginResponse | JSONResponse:
    result = service.login(request_data.email, request_data.password)
    if not result.ok:
        return _failed(result)
    return LoginResponse(
        message="Login successful",
        token=result.token,
        expires_in_seconds=service.tokens.ttl_seconds,
    )


@router.get(
    "/session",
    response_model=SessionResponse,
    responses={401: {"model": ErrorResponse, "description": "Not authenticated"}},
    summary="Current session",
)
def session(email: str = Depends(get_session_email)) -> SessionResponse:
    """Return the account identity carried by the Bearer token."""
    return SessionResponse(email=email)
