"""
Module containing the base classes for discovery providers.
"""

import abc
import collections
from typing import Optional

from pydantic import BaseModel, constr


class ClusterConfig(BaseModel):
    """
    Model for the connection details of a cluster.
    """
    #: The provider-specific identifier of the cluster
    id: constr(min_length = 1)
    #: The name of the cluster
    name: constr(min_length = 1)
    #: The address of the cluster API server
    control_plane_endpoint: Optional[str] = None
    #: The base64-encoded CA data for the cluster API server
    certificate_authority_data: Optional[str] = None


GetClusterInput = collections.namedtuple(
    'GetClusterInput',
    ['config_set', 'identity', 'cluster_id']
)
GetClusterOutput = collections.namedtuple('GetClusterOutput', ['cluster'])

ListClustersInput = collections.namedtuple('ListClustersInput', ['config_set', 'identity'])
ListClustersOutput = collections.namedtuple('ListClustersOutput', ['clusters'])


class DiscoveryProvider(abc.ABC):
    """
    Base class for all discovery providers.
    """
    #: The name of the provider
    name = None

    @abc.abstractmethod
    async def get_cluster(self, input: GetClusterInput) -> GetClusterOutput:
        """
        Return the connection details for the cluster with the given identifier.
        """

    @abc.abstractmethod
    async def list_clusters(self, input: ListClustersInput) -> ListClustersOutput:
        """
        Return the connection details for all the clusters visible to the identity.
        """
