"""
Module containing specific exceptions raised by identity providers.
"""

from ..exceptions import KconnectError


class IdentityError(KconnectError):
    """
    Base class for errors raised during authentication.
    """


class HttpClientRequired(IdentityError):
    """
    Raised when a provider that needs an HTTP client is created without one.
    """
    code = 300
    message = "HTTP client required"


class EndpointDiscoveryFailed(IdentityError):
    """
    Raised when the endpoints for an authority cannot be discovered.
    """
    code = 301
    message = "Endpoint discovery failed"


class RealmDiscoveryFailed(IdentityError):
    """
    Raised when the realm for a user cannot be discovered.
    """
    code = 302
    message = "Realm discovery failed"


class InteractiveLoginRequired(IdentityError):
    """
    Raised when credentials could only be acquired interactively but interaction is not allowed.
    """
    code = 303
    message = "Interactive login required"


class InteractiveLoginFailed(IdentityError):
    """
    Raised when the interactive login fails.
    """
    code = 304
    message = "Interactive login failed"


class NoExpiryTime(IdentityError):
    """
    Raised when the acquired token has no expiry time.
    """
    code = 305
    message = "Token has no expiry time"
