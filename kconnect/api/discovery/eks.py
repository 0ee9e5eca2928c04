"""
Module containing a discovery provider for AWS Elastic Kubernetes Service clusters.

Clusters are identified by their ARN, e.g.
``arn:aws:eks:us-east-1:123456789012:cluster/my-cluster``. The leading ``arn:`` is optional.
"""

import asyncio
import functools
import logging
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from pydantic import constr

from ..config import ConfigurationSet, ConfigItemNotFound
from ..identity.base import Identity
from ..registry import PluginRegistration
from .base import ClusterConfig, DiscoveryProvider, GetClusterOutput, ListClustersOutput
from .exceptions import InvalidClusterIdentifier, LookupFailed, SetupFailed


#: The name of the provider
PROVIDER_NAME = "eks"

REGION_CONFIG_ITEM = "region"
PROFILE_CONFIG_ITEM = "profile"

#: The number of fields in an ARN once the "arn:" prefix is removed
ARN_FIELDS = 5
#: The number of parts in the resource field of a cluster ARN
EXPECTED_NAME_PARTS = 2


class AWSIdentity(Identity):
    """
    Identity holding AWS credentials.

    The access token is the session token for the credentials.
    """
    aws_access_key_id: constr(min_length = 1)
    aws_secret_access_key: constr(min_length = 1)
    region: Optional[str] = None


def translate_identifier(cluster_id):
    """
    Return the cluster name for the given cluster ARN.

    The resource part of the ARN must be exactly ``cluster/<name>``-shaped, i.e. two
    parts separated by a slash.
    """
    arn = cluster_id[4:] if cluster_id.startswith("arn:") else cluster_id
    fields = arn.split(":", ARN_FIELDS - 1)
    if len(fields) != ARN_FIELDS:
        raise InvalidClusterIdentifier(f'"{cluster_id}" is not a valid ARN')
    partition, service, _, _, resource = fields
    if not partition or not service or not resource:
        raise InvalidClusterIdentifier(f'"{cluster_id}" is not a valid ARN')
    parts = resource.split("/")
    if len(parts) != EXPECTED_NAME_PARTS or not all(parts):
        raise InvalidClusterIdentifier(
            f'unexpected cluster resource format "{resource}" in "{cluster_id}"'
        )
    return parts[1]


def cluster_config_from_response(cluster):
    """
    Return a ``ClusterConfig`` for a cluster returned by the EKS API.
    """
    return ClusterConfig(
        id = cluster['arn'],
        name = cluster['name'],
        control_plane_endpoint = cluster.get('endpoint'),
        certificate_authority_data = cluster.get('certificateAuthority', {}).get('data')
    )


class EKSClusterProvider(DiscoveryProvider):
    """
    Discovery provider for EKS clusters.
    """
    name = PROVIDER_NAME

    def __init__(self, logger = None, session_factory = boto3.session.Session):
        self.logger = logger or logging.getLogger(__name__)
        self.session_factory = session_factory

    def setup(self, config_set, identity):
        """
        Return a boto3 session for the given configuration and identity.
        """
        try:
            region = config_set.value_of(REGION_CONFIG_ITEM)
            profile = config_set.value_of(PROFILE_CONFIG_ITEM) if config_set.exists(PROFILE_CONFIG_ITEM) else None
        except ConfigItemNotFound as exc:
            raise SetupFailed(f'setting up {PROVIDER_NAME} provider: {exc}') from exc
        if not region:
            raise SetupFailed(f'setting up {PROVIDER_NAME} provider: a region is required')
        if identity is None:
            # Use the default credential chain
            kwargs = dict(profile_name = profile or None, region_name = region)
        elif isinstance(identity, AWSIdentity):
            kwargs = dict(
                aws_access_key_id = identity.aws_access_key_id,
                aws_secret_access_key = identity.aws_secret_access_key,
                aws_session_token = identity.access_token,
                region_name = region
            )
        else:
            raise SetupFailed(
                f'setting up {PROVIDER_NAME} provider: identity from '
                f'"{identity.provider_name}" is not an AWS identity'
            )
        try:
            return self.session_factory(**kwargs)
        except BotoCoreError as exc:
            raise SetupFailed(f'setting up {PROVIDER_NAME} provider: {exc}') from exc

    async def _call(self, func, *args, **kwargs):
        # boto3 is blocking, so run it in the default executor
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(func, *args, **kwargs))

    async def describe_cluster(self, client, cluster_name):
        try:
            response = await self._call(client.describe_cluster, name = cluster_name)
        except (BotoCoreError, ClientError) as exc:
            raise LookupFailed(f'getting cluster config for {cluster_name}: {exc}') from exc
        return cluster_config_from_response(response['cluster'])

    async def get_cluster(self, input):
        session = self.setup(input.config_set, input.identity)
        self.logger.info('Getting EKS cluster %s', input.cluster_id)
        cluster_name = translate_identifier(input.cluster_id)
        client = await self._call(session.client, 'eks')
        cluster = await self.describe_cluster(client, cluster_name)
        return GetClusterOutput(cluster = cluster)

    async def list_clusters(self, input):
        session = self.setup(input.config_set, input.identity)
        self.logger.info('Listing EKS clusters')
        client = await self._call(session.client, 'eks')
        def cluster_names():
            paginator = client.get_paginator('list_clusters')
            return [name for page in paginator.paginate() for name in page['clusters']]
        try:
            names = await self._call(cluster_names)
        except (BotoCoreError, ClientError) as exc:
            raise LookupFailed(f'listing EKS clusters: {exc}') from exc
        self.logger.debug('Found %d EKS clusters', len(names))
        clusters = [await self.describe_cluster(client, name) for name in names]
        return ListClustersOutput(clusters = clusters)


def configuration_items(scope_to = None):
    """
    Return the configuration items for the EKS discovery provider.
    """
    cs = ConfigurationSet()
    cs.string(REGION_CONFIG_ITEM, description = "The AWS region to use")
    cs.string(PROFILE_CONFIG_ITEM, description = "The AWS profile to use when no identity is given")
    cs.set_short(REGION_CONFIG_ITEM, "r")
    cs.set_required(REGION_CONFIG_ITEM)
    return cs


def create(input):
    """
    Create an EKS discovery provider from the plugin creation input.
    """
    return EKSClusterProvider(logger = input.logger)


registration = PluginRegistration(
    name = PROVIDER_NAME,
    usage_example = (
        "kconnect use eks --region us-east-1 "
        "--cluster-id arn:aws:eks:us-east-1:123456789012:cluster/my-cluster"
    ),
    configuration_items = configuration_items,
    create = create
)
