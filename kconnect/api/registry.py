"""
Module containing the registry of discovery and identity plugins.

Plugins are registered by name for each kind. Packages can provide additional plugins
using the ``kconnect.api.discovery`` and ``kconnect.api.identity`` entry points, where
each entry point refers to a ``PluginRegistration``.
"""

import collections
import logging
from importlib.metadata import entry_points

from .exceptions import DuplicateName, NotFound


logger = logging.getLogger(__name__)


#: Entry point group for discovery plugins
DISCOVERY_ENTRY_POINT_GROUP = 'kconnect.api.discovery'
#: Entry point group for identity plugins
IDENTITY_ENTRY_POINT_GROUP = 'kconnect.api.identity'


class DuplicatePlugin(DuplicateName):
    """
    Raised when a plugin name is registered twice for the same kind.
    """
    code = 200
    message = "Plugin already registered"


class PluginNotFound(NotFound):
    """
    Raised when no plugin is registered with the requested name.
    """
    code = 201
    message = "Plugin not found"


class PluginRegistration(collections.namedtuple(
    'PluginRegistration',
    ['name', 'usage_example', 'configuration_items', 'create']
)):
    """
    Object describing a plugin.

    Attributes:
      name: The name of the plugin, unique for the plugin kind.
      usage_example: Human-readable example of using the plugin.
      configuration_items: Callable taking a scope and returning a ``ConfigurationSet``.
      create: Callable taking a ``PluginCreationInput`` and returning a provider.
    """


class PluginCreationInput(collections.namedtuple(
    'PluginCreationInput',
    ['logger', 'http_client', 'is_interactive', 'settings']
)):
    """
    Object passed to the ``create`` function of a plugin.

    Attributes:
      logger: The logger the provider should use.
      http_client: The shared HTTP client, or ``None``.
      is_interactive: Whether the provider may interact with the operator.
      settings: The ``ApiSettings`` in effect.
    """


class PluginRegistry:
    """
    Catalog of discovery and identity plugins, keyed by name.

    The registry is populated once, before any provider is requested, and is only
    read after that.
    """
    DISCOVERY = 'discovery'
    IDENTITY = 'identity'

    def __init__(self):
        self._plugins = { self.DISCOVERY: {}, self.IDENTITY: {} }

    def _register(self, kind, registration):
        plugins = self._plugins[kind]
        if registration.name in plugins:
            raise DuplicatePlugin(
                f'{kind} plugin "{registration.name}" already registered'
            )
        logger.debug('Registering %s plugin: %s', kind, registration.name)
        plugins[registration.name] = registration

    def _get(self, kind, name):
        plugins = self._plugins[kind]
        try:
            return plugins[name]
        except KeyError:
            available = ', '.join(plugins) or 'none'
            raise PluginNotFound(
                f'no {kind} plugin named "{name}" (available: {available})'
            )

    def register_discovery_plugin(self, registration):
        self._register(self.DISCOVERY, registration)

    def register_identity_plugin(self, registration):
        self._register(self.IDENTITY, registration)

    def get_discovery_plugin(self, name):
        return self._get(self.DISCOVERY, name)

    def get_identity_plugin(self, name):
        return self._get(self.IDENTITY, name)

    def get_plugin(self, kind, name):
        """
        Return the registration for the plugin of the given kind and name.
        """
        if kind not in self._plugins:
            raise PluginNotFound(f'unknown plugin kind "{kind}"')
        return self._get(kind, name)

    def discovery_plugins(self):
        return list(self._plugins[self.DISCOVERY].values())

    def identity_plugins(self):
        return list(self._plugins[self.IDENTITY].values())


def load_plugins(registry = None):
    """
    Populate a registry with the plugins advertised by entry points and return it.

    A duplicate plugin name means the process is in an inconsistent state, so it exits.
    """
    registry = registry or PluginRegistry()
    groups = (
        (DISCOVERY_ENTRY_POINT_GROUP, registry.register_discovery_plugin),
        (IDENTITY_ENTRY_POINT_GROUP, registry.register_identity_plugin),
    )
    for group, register in groups:
        for ep in entry_points(group = group):
            try:
                register(ep.load())
            except DuplicateName as exc:
                logger.critical('Failed to register plugin from %s: %s', ep.value, exc)
                raise SystemExit(1) from exc
    return registry
