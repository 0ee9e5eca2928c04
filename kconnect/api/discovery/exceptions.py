"""
Module containing specific exceptions raised by discovery providers.
"""

from ..exceptions import KconnectError


class DiscoveryError(KconnectError):
    """
    Base class for errors raised by discovery providers.
    """


class SetupFailed(DiscoveryError):
    """
    Raised when a provider cannot be set up from its configuration and identity.
    """
    code = 400
    message = "Discovery provider setup failed"


class InvalidClusterIdentifier(DiscoveryError):
    """
    Raised when a cluster identifier is not recognised by a provider.
    """
    code = 401
    message = "Invalid cluster identifier"


class LookupFailed(DiscoveryError):
    """
    Raised when the backend lookup for a cluster fails.
    """
    code = 402
    message = "Cluster lookup failed"
