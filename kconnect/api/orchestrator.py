"""
Module containing the orchestrator that drives discovery and identity providers.
"""

import logging

from .conf import ApiSettings
from .discovery.base import GetClusterInput, ListClustersInput
from .identity.base import AuthenticateInput
from .registry import PluginCreationInput, PluginRegistry


class Orchestrator:
    """
    Looks up providers in a registry, creates them and invokes them for a single call.

    The orchestrator holds no state between calls apart from its collaborators.
    """
    def __init__(self, registry: PluginRegistry, http_client, logger = None, settings = None):
        self.registry = registry
        self.http_client = http_client
        self.logger = logger or logging.getLogger(__name__)
        self.settings = settings or ApiSettings()

    def configuration_items(self, kind, name, scope_to = None):
        """
        Return the configuration set declared by the named plugin of the given kind.
        """
        return self.registry.get_plugin(kind, name).configuration_items(scope_to)

    def _create(self, registration, interactive):
        return registration.create(
            PluginCreationInput(
                logger = self.logger.getChild(registration.name),
                http_client = self.http_client,
                is_interactive = interactive,
                settings = self.settings
            )
        )

    async def authenticate(self, name, config_set, interactive = None):
        """
        Authenticate using the named identity provider and return the identity.

        The configuration set is validated before the provider is created, so
        configuration errors are reported before any network call is made.
        """
        if interactive is None:
            interactive = self.settings.interactive
        registration = self.registry.get_identity_plugin(name)
        config_set.validate()
        provider = self._create(registration, interactive)
        self.logger.info('Authenticating with identity provider %s', name)
        output = await provider.authenticate(AuthenticateInput(config_set, interactive))
        return output.identity

    async def get_cluster(self, name, config_set, identity, cluster_id):
        """
        Return the connection details for a cluster using the named discovery provider.
        """
        registration = self.registry.get_discovery_plugin(name)
        config_set.validate()
        provider = self._create(registration, False)
        self.logger.info('Getting cluster %s with discovery provider %s', cluster_id, name)
        output = await provider.get_cluster(GetClusterInput(config_set, identity, cluster_id))
        return output.cluster

    async def list_clusters(self, name, config_set, identity):
        """
        Return the connection details for all clusters using the named discovery provider.
        """
        registration = self.registry.get_discovery_plugin(name)
        config_set.validate()
        provider = self._create(registration, False)
        output = await provider.list_clusters(ListClustersInput(config_set, identity))
        return output.clusters
