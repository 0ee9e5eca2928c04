"""
Azure Active Directory integrations used by the AAD identity provider.
"""

import datetime
import enum
import json
import logging
from typing import Optional

from dateutil.parser import parse as dateutil_parse
from pydantic import BaseModel, Field, ValidationError, constr

import httpx

from .. import process
from ..exceptions import ProcessFailed
from ..http import get_json
from .base import Identity
from .exceptions import EndpointDiscoveryFailed, RealmDiscoveryFailed


logger = logging.getLogger(__name__)


#: The client id of the Azure CLI, usable as a public client
AZURE_CLI_CLIENT_ID = "04b07795-8ddb-461a-bbee-02f9e1bf7b46"

#: The API version used for user realm discovery
USER_REALM_API_VERSION = "1.0"


class AADHost(str, enum.Enum):
    """
    Enum of the well-known AAD hosts.

    Any other host, e.g. for a partner cloud, can still be configured.
    """
    WORLDWIDE = "login.microsoftonline.com"
    US_GOV = "login.microsoftonline.us"
    CHINA = "login.chinacloudapi.cn"
    GERMANY = "login.microsoftonline.de"


class AuthorityConfig(BaseModel):
    """
    Model describing an AAD authority.
    """
    #: The tenant id
    tenant: constr(min_length = 1)
    #: The AAD host
    host: constr(min_length = 1)
    #: The authority URI derived from the host and tenant
    authority_uri: constr(min_length = 1)

    @classmethod
    def for_tenant(cls, tenant, host):
        return cls(
            tenant = tenant,
            host = host,
            authority_uri = f"https://{host}/{tenant}/"
        )


class OAuthEndpoints(BaseModel):
    """
    Model for the OAuth endpoints of an authority.
    """
    authorization_endpoint: constr(min_length = 1)
    token_endpoint: constr(min_length = 1)
    device_code_endpoint: Optional[str] = Field(None, alias = "device_authorization_endpoint")


class UserRealm(BaseModel):
    """
    Model for the realm information of a user account.
    """
    #: The account type, e.g. "Managed", "Federated" or "Unknown"
    account_type: constr(min_length = 1)
    domain_name: Optional[str] = None
    cloud_instance_name: Optional[str] = None
    cloud_audience_urn: Optional[str] = None
    federation_protocol: Optional[str] = None
    federation_metadata_url: Optional[str] = None
    federation_active_auth_url: Optional[str] = None

    @property
    def is_federated(self):
        return self.account_type.lower() == "federated"


class AuthenticationConfig(BaseModel):
    """
    Model for the configuration used during authentication.

    The endpoints are filled in once they have been discovered.
    """
    authority: AuthorityConfig
    client_id: constr(min_length = 1)
    username: Optional[str] = None
    password: Optional[str] = Field(None, repr = False)
    endpoints: Optional[OAuthEndpoints] = None


class OAuthEndpointsResolver:
    """
    Resolves the OAuth endpoints for an authority using its OpenID configuration.
    """
    def __init__(self, http_client):
        self.http_client = http_client

    async def resolve(self, authority: AuthorityConfig) -> OAuthEndpoints:
        url = f"{authority.authority_uri}v2.0/.well-known/openid-configuration"
        logger.debug('Fetching OpenID configuration from %s', url)
        try:
            data = await get_json(self.http_client, url)
            return OAuthEndpoints.model_validate(data)
        except (httpx.HTTPError, ValidationError) as exc:
            raise EndpointDiscoveryFailed(
                f'getting endpoints for authority {authority.authority_uri}: {exc}'
            ) from exc


class IdentityClient:
    """
    Client for the AAD identity metadata APIs.
    """
    def __init__(self, http_client):
        self.http_client = http_client

    async def get_user_realm(self, config: AuthenticationConfig) -> UserRealm:
        """
        Return the realm for the user in the given config.
        """
        host = config.authority.host
        url = f"https://{host}/common/userrealm/{config.username or ''}"
        try:
            data = await get_json(
                self.http_client,
                url,
                params = { 'api-version': USER_REALM_API_VERSION }
            )
            return UserRealm.model_validate(data)
        except (httpx.HTTPError, ValidationError) as exc:
            raise RealmDiscoveryFailed(
                f'getting user realm for "{config.username}": {exc}'
            ) from exc


class AccessToken(BaseModel):
    """
    Model for an access token reported by the Azure CLI.
    """
    access_token: constr(min_length = 1)
    token_type: str = "Bearer"
    expires_on: Optional[datetime.datetime] = None
    tenant: Optional[str] = None

    @classmethod
    def from_cli_output(cls, output):
        data = json.loads(output)
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")
        # Newer CLI versions give a POSIX timestamp, older ones only a local time string
        if data.get('expires_on'):
            expires_on = datetime.datetime.fromtimestamp(
                int(data['expires_on']),
                datetime.timezone.utc
            )
        elif data.get('expiresOn'):
            expires_on = dateutil_parse(data['expiresOn']).astimezone(datetime.timezone.utc)
        else:
            expires_on = None
        return cls(
            access_token = data.get('accessToken') or '',
            token_type = data.get('tokenType') or 'Bearer',
            expires_on = expires_on,
            tenant = data.get('tenant')
        )


class AzureCli:
    """
    Wrapper around the Azure CLI executable.
    """
    def __init__(self, executable = "az", env = None):
        self.executable = executable
        self.env = env

    async def login(self, username, password, tenant = None):
        """
        Log in non-interactively using a username and password.
        """
        args = [self.executable, "login", "--username", username, "--password", password]
        if tenant:
            args.extend(["--tenant", tenant])
        await process.run(*args, env = self.env)

    async def login_interactive(self, tenant):
        """
        Log in interactively, passing the terminal through to the CLI.
        """
        await process.run(
            self.executable, "login", "--tenant", tenant,
            interactive = True,
            env = self.env
        )

    async def get_access_token(self, tenant) -> AccessToken:
        """
        Return an access token for the logged in account.
        """
        output = await process.run(
            self.executable, "account", "get-access-token",
            "--tenant", tenant,
            "--output", "json",
            env = self.env
        )
        try:
            return AccessToken.from_cli_output(output)
        except ValueError as exc:
            raise ProcessFailed(f'unexpected output from "{self.executable}": {exc}') from exc


class ActiveDirectoryIdentity(Identity):
    """
    Identity produced by authenticating with Azure Active Directory.
    """
    tenant: constr(min_length = 1)
    client_id: constr(min_length = 1)
    authority_uri: constr(min_length = 1)
    username: Optional[str] = None
    endpoints: OAuthEndpoints
    user_realm: UserRealm
