"""
Settings for the kconnect API.
"""

import logging
import os

from pydantic import BaseModel, Field, confloat, constr

from flexi_settings import include


logger = logging.getLogger(__name__)


class ApiSettings(BaseModel):
    """
    Model defining settings for the kconnect API.
    """
    #: The timeout in seconds for HTTP requests made by providers
    http_timeout: confloat(gt = 0) = 30.0
    #: Whether to verify SSL certificates for HTTP requests
    verify_ssl: bool = True
    #: The Azure CLI executable used for interactive logins
    azure_cli: constr(min_length = 1) = "az"
    #: Whether interactive logins are allowed by default
    interactive: bool = True
    #: Environment variables to set for external processes
    process_env: dict = Field(default_factory = dict)


def from_file(config_file):
    """
    Build a settings object from a config file.
    """
    config = dict()
    include(config_file, config)
    return ApiSettings(**config)


def from_env_file(var_name, default_file):
    """
    Build a settings object from a config file specified by an environment variable.

    If the file does not exist, the default settings are returned.
    """
    config_file = os.environ.get(var_name, default_file)
    if not os.path.exists(config_file):
        logger.debug('Config file %s does not exist, using default settings', config_file)
        return ApiSettings()
    return from_file(config_file)


def load_settings():
    """
    Load the settings from the file given by ``KCONNECT_API_CONFIG``.
    """
    return from_env_file('KCONNECT_API_CONFIG', '/etc/kconnect/api.conf')
