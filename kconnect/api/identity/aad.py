"""
Module containing an identity provider that authenticates with Azure Active Directory.
"""

import logging
from typing import Optional

from pydantic import BaseModel, Field, ValidationError, constr

from ..config import (
    ConfigurationSet,
    ConfigItemNotFound,
    ConfigResolutionFailed,
    invalid_from_validation_error
)
from ..exceptions import KconnectError, TransportFailed
from ..registry import PluginRegistration
from .base import (
    IdentityProvider,
    AuthenticateOutput,
    add_common_identity_config,
    USERNAME_CONFIG_ITEM,
    PASSWORD_CONFIG_ITEM
)
from .azure import (
    AADHost,
    AZURE_CLI_CLIENT_ID,
    ActiveDirectoryIdentity,
    AuthenticationConfig,
    AuthorityConfig,
    AzureCli,
    IdentityClient,
    OAuthEndpointsResolver
)
from .exceptions import (
    HttpClientRequired,
    InteractiveLoginFailed,
    InteractiveLoginRequired,
    NoExpiryTime
)


#: The name of the provider
PROVIDER_NAME = "aad"

TENANT_ID_CONFIG_ITEM = "tenant-id"
CLIENT_ID_CONFIG_ITEM = "client-id"
AAD_HOST_CONFIG_ITEM = "aad-host"


class AADConfig(BaseModel):
    """
    Model for the configuration of the AAD identity provider.
    """
    tenant_id: constr(strip_whitespace = True, min_length = 1) = Field(..., alias = TENANT_ID_CONFIG_ITEM)
    client_id: constr(strip_whitespace = True, min_length = 1) = Field(..., alias = CLIENT_ID_CONFIG_ITEM)
    aad_host: constr(strip_whitespace = True, min_length = 1) = Field(..., alias = AAD_HOST_CONFIG_ITEM)
    username: Optional[str] = Field(None, alias = USERNAME_CONFIG_ITEM)
    password: Optional[str] = Field(None, alias = PASSWORD_CONFIG_ITEM, repr = False)


class AADIdentityProvider(IdentityProvider):
    """
    Identity provider that authenticates a user with Azure Active Directory.

    Credentials are acquired using the Azure CLI, first non-interactively with the
    supplied username and password and then, if that fails and interaction is
    allowed, interactively.
    """
    name = PROVIDER_NAME

    def __init__(self, http_client, azure_cli = None, logger = None):
        if http_client is None:
            raise HttpClientRequired(f'{PROVIDER_NAME} identity provider requires an HTTP client')
        self.http_client = http_client
        self.azure_cli = azure_cli or AzureCli()
        self.logger = logger or logging.getLogger(__name__)

    def resolve_config(self, config_set):
        """
        Return the values needed by the provider from the configuration set.
        """
        try:
            return {
                name: config_set.value_of(name)
                for name in (
                    TENANT_ID_CONFIG_ITEM,
                    CLIENT_ID_CONFIG_ITEM,
                    AAD_HOST_CONFIG_ITEM,
                    USERNAME_CONFIG_ITEM,
                    PASSWORD_CONFIG_ITEM
                )
            }
        except ConfigItemNotFound as exc:
            raise ConfigResolutionFailed(f'resolving {PROVIDER_NAME} config: {exc}') from exc

    def validate_config(self, values):
        """
        Return a validated ``AADConfig`` for the given values.
        """
        try:
            return AADConfig.model_validate(values)
        except ValidationError as exc:
            raise invalid_from_validation_error(exc) from exc

    async def acquire_silently(self, cfg):
        """
        Try to acquire a token without interaction.

        Returns the token, or ``None`` if interaction is needed.
        """
        if not cfg.username or not cfg.password:
            self.logger.info('No username and password supplied, interactive login needed')
            return None
        try:
            await self.azure_cli.login(cfg.username, cfg.password, cfg.tenant_id)
            return await self.azure_cli.get_access_token(cfg.tenant_id)
        except TransportFailed:
            # A missing CLI will not be fixed by an interactive login
            raise
        except KconnectError as exc:
            self.logger.warning('Non-interactive login failed: %s', exc)
            return None

    async def acquire_interactively(self, cfg):
        """
        Acquire a token by asking the operator to log in.
        """
        try:
            await self.azure_cli.login_interactive(cfg.tenant_id)
            return await self.azure_cli.get_access_token(cfg.tenant_id)
        except TransportFailed:
            raise
        except KconnectError as exc:
            raise InteractiveLoginFailed(
                f'interactive login for tenant {cfg.tenant_id}: {exc}'
            ) from exc

    async def authenticate(self, input):
        self.logger.info('Authenticating user with %s', PROVIDER_NAME)
        values = self.resolve_config(input.config_set)
        cfg = self.validate_config(values)
        auth_config = AuthenticationConfig(
            authority = AuthorityConfig.for_tenant(cfg.tenant_id, cfg.aad_host),
            client_id = cfg.client_id,
            username = cfg.username,
            password = cfg.password
        )
        self.logger.debug('Discovering endpoints for %s', auth_config.authority.authority_uri)
        endpoints = await OAuthEndpointsResolver(self.http_client).resolve(auth_config.authority)
        auth_config.endpoints = endpoints
        self.logger.debug('Discovering user realm')
        user_realm = await IdentityClient(self.http_client).get_user_realm(auth_config)
        interactive_required = False
        token = await self.acquire_silently(cfg)
        if token is None:
            if not input.interactive:
                raise InteractiveLoginRequired(
                    f'non-interactive login for tenant {cfg.tenant_id} failed '
                    'and interactive login is not allowed'
                )
            interactive_required = True
            token = await self.acquire_interactively(cfg)
        if token.expires_on is None:
            raise NoExpiryTime(f'token for tenant {cfg.tenant_id} has no expiry time')
        identity = ActiveDirectoryIdentity(
            access_token = token.access_token,
            token_type = token.token_type,
            expires_on = token.expires_on,
            provider_name = PROVIDER_NAME,
            interactive_required = interactive_required,
            tenant = auth_config.authority.tenant,
            client_id = auth_config.client_id,
            authority_uri = auth_config.authority.authority_uri,
            username = auth_config.username,
            endpoints = endpoints,
            user_realm = user_realm
        )
        self.logger.info('Authenticated with %s (interactive: %s)', PROVIDER_NAME, interactive_required)
        return AuthenticateOutput(identity = identity)


def configuration_items(scope_to = None):
    """
    Return the configuration items for the AAD identity provider.

    The items are the same regardless of the discovery provider it is used with.
    """
    cs = ConfigurationSet()
    add_common_identity_config(cs)
    cs.string(TENANT_ID_CONFIG_ITEM, description = "The azure tenant id")
    cs.string(CLIENT_ID_CONFIG_ITEM, AZURE_CLI_CLIENT_ID, "The azure ad client id")
    cs.string(AAD_HOST_CONFIG_ITEM, AADHost.WORLDWIDE.value, "The AAD host to use")
    cs.set_short(TENANT_ID_CONFIG_ITEM, "t")
    cs.set_required(TENANT_ID_CONFIG_ITEM)
    return cs


def create(input):
    """
    Create an AAD identity provider from the plugin creation input.
    """
    if input.http_client is None:
        raise HttpClientRequired(f'{PROVIDER_NAME} identity provider requires an HTTP client')
    if input.settings is not None:
        azure_cli = AzureCli(input.settings.azure_cli, input.settings.process_env or None)
    else:
        azure_cli = AzureCli()
    return AADIdentityProvider(input.http_client, azure_cli, input.logger)


registration = PluginRegistration(
    name = PROVIDER_NAME,
    usage_example = "kconnect to aks --idp-protocol aad --tenant-id <tenant> --username user@example.com",
    configuration_items = configuration_items,
    create = create
)
