"""
Module containing the base classes for identity providers.
"""

import abc
import collections
import datetime
from typing import Optional

from pydantic import BaseModel, constr

from ..config import ConfigurationSet


#: Name of the common username config item
USERNAME_CONFIG_ITEM = "username"
#: Name of the common password config item
PASSWORD_CONFIG_ITEM = "password"


class Identity(BaseModel):
    """
    Normalised identity returned by all identity providers.
    """
    #: The access token
    access_token: constr(min_length = 1)
    #: The refresh token, if the backend provides one
    refresh_token: Optional[str] = None
    #: The type of the token
    token_type: str = "Bearer"
    #: When the access token expires
    expires_on: datetime.datetime
    #: The name of the provider that produced the identity
    provider_name: constr(min_length = 1)
    #: Whether an interactive step was required to produce the identity
    interactive_required: bool = False

    @property
    def expired(self):
        """
        Whether the access token has expired.
        """
        expires_on = self.expires_on
        # Naive datetimes are assumed to be UTC
        if expires_on.tzinfo is None:
            expires_on = expires_on.replace(tzinfo = datetime.timezone.utc)
        return expires_on <= datetime.datetime.now(datetime.timezone.utc)


AuthenticateInput = collections.namedtuple('AuthenticateInput', ['config_set', 'interactive'])
AuthenticateOutput = collections.namedtuple('AuthenticateOutput', ['identity'])


class IdentityProvider(abc.ABC):
    """
    Base class for all identity providers.
    """
    #: The name of the provider
    name = None

    @abc.abstractmethod
    async def authenticate(self, input: AuthenticateInput) -> AuthenticateOutput:
        """
        Authenticate using the configuration in the input and return the identity.

        If ``input.interactive`` is false, the provider must never block waiting
        for the operator.
        """


def add_common_identity_config(config_set: ConfigurationSet):
    """
    Declare the configuration items shared by all identity providers.
    """
    config_set.string(USERNAME_CONFIG_ITEM, description = "The username to use for authentication")
    config_set.string(PASSWORD_CONFIG_ITEM, description = "The password to use for authentication")
    config_set.set_short(USERNAME_CONFIG_ITEM, "u")
    return config_set
