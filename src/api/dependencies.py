"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting the domain service
and infrastructure adapters into routes, plus the builders used at startup
to wire them from settings.
"""

from datetime import timedelta

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.adapters.security.passwords import BcryptCredentialVerifier
from src.adapters.security.tokens import JwtSessionTokenIssuer
from src.adapters.smtp.console import ConsoleNotifier
from src.adapters.smtp.mailer import SmtpNotifier
from src.config.settings import Settings
from src.domain.accounts import AccountStateMachine
from src.domain.ports import AccountStore, Notifier


def build_notifier(settings: Settings) -> Notifier:
    """SMTP delivery when a host is configured, console logging otherwise."""
    if not settings.smtp_host:
        return ConsoleNotifier()
    return SmtpNotifier(
        host=settings.smtp_host,
        port=settings.smtp_port,
        sender=settings.smtp_from,
        username=settings.smtp_user,
        password=settings.smtp_password,
        use_tls=settings.smtp_use_tls,
        timeout=settings.smtp_timeout_seconds,
        app_name=settings.app_name,
        code_ttl_minutes=settings.code_ttl_seconds // 60,
    )


def build_token_issuer(settings: Settings) -> JwtSessionTokenIssuer:
    return JwtSessionTokenIssuer(
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        ttl=timedelta(hours=settings.session_ttl_hours),
    )


def build_account_service(
    settings: Settings,
    store: AccountStore,
    notifier: Notifier | None = None,
    tokens: JwtSessionTokenIssuer | None = None,
) -> AccountStateMachine:
    """
    Create the account state machine with injected dependencies.

    One instance serves the whole process so that its per-email locks
    are shared by all requests.
    """
    return AccountStateMachine(
        store=store,
        notifier=notifier if notifier is not None else build_notifier(settings),
        credentials=BcryptCredentialVerifier(rounds=settings.bcrypt_cost),
        tokens=tokens if tokens is not None else build_token_issuer(settings),
        code_ttl=timedelta(seconds=settings.code_ttl_seconds),
        max_write_retries=settings.max_write_retries,
    )


def get_store(request: Request) -> AccountStore:
    """
    Get account store from app state.

    The store is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.store


def get_account_service(request: Request) -> AccountStateMachine:
    """Get the process-wide account state machine from app state."""
    return request.app.state.account_service


def get_token_issuer(request: Request) -> JwtSessionTokenIssuer:
    return request.app.state.token_issuer


# Bearer security scheme for OpenAPI documentation
bearer_scheme = HTTPBearer(auto_error=False)


def get_session_email(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    tokens: JwtSessionTokenIssuer = Depends(get_token_issuer),
) -> str:
    """
    Resolve the account email from a Bearer session token.

    Raises:
        HTTPException: 401 if the token is missing, expired or forged
    """
    email = tokens.decode(credentials.credentials) if credentials is not None else None
    if email is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return email
