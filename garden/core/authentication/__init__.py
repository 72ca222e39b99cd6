from garden.core.authentication.constants import AuthErrorCodeEnum
from garden.core.authentication.domains import AuthResult, SessionToken, TokenContent, TwoFactorChallenge
from garden.core.authentication.guards import AuthenticatedUserGuard, authenticate_user, oauth
from garden.core.authentication.services.authentication_service import AuthenticationService, AuthFlowError

__all__ = [
    # Constants
    'AuthErrorCodeEnum',
    # Domains
    'AuthResult',
    'SessionToken',
    'TokenContent',
    'TwoFactorChallenge',
    # Guards
    'AuthenticatedUserGuard',
    'authenticate_user',
    'oauth',
    # Services
    'AuthFlowError',
    'AuthenticationService',
]
