"""Shared API dependencies for authentication and common functionality."""

from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from rarity_checker.core.errors import AuthError
from rarity_checker.db.session import get_db
from rarity_checker.models import User
from rarity_checker.repositories import UserRepository
from rarity_checker.services.auth import WalletAuthenticator
from rarity_checker.services.container import Services
from rarity_checker.services.ranking import RankingService

# HTTP Bearer scheme; missing credentials are reported through AuthError
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_services(request: Request) -> Services:
    """Return the services built for this application instance."""
    services: Services = request.app.state.services
    return services


ServicesDep = Annotated[Services, Depends(get_services)]


def get_authenticator(services: ServicesDep) -> WalletAuthenticator:
    return services.authenticator


def get_ranking_service(services: ServicesDep) -> RankingService:
    return services.ranking


AuthenticatorDep = Annotated[WalletAuthenticator, Depends(get_authenticator)]
RankingServiceDep = Annotated[RankingService, Depends(get_ranking_service)]


def get_session_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> str:
    """Return the raw bearer token or fail with ``not_authenticated``."""
    if credentials is None or not credentials.credentials:
        raise AuthError("Unauthorized")
    return credentials.credentials


SessionTokenDep = Annotated[str, Depends(get_session_token)]


def get_current_wallet(token: SessionTokenDep, authenticator: AuthenticatorDep) -> str:
    """Return the wallet address bound to the caller's live session."""
    return authenticator.resolve_session(token)


CurrentWalletDep = Annotated[str, Depends(get_current_wallet)]


def get_current_user(wallet: CurrentWalletDep, db: SessionDep) -> User:
    """Get the current authenticated user.

    Raises:
        AuthError: If the session is missing, expired or its user is gone.
    """
    user = UserRepository(db).get(wallet)
    if user is None:
        raise AuthError("User not found for this session.")
    return user


# Type alias for current user dependency
CurrentUserDep = Annotated[User, Depends(get_current_user)]
