import datetime
import threading

import boto3
import pytest
from botocore.stub import Stubber

from kconnect.api.discovery import eks
from kconnect.api.discovery.base import GetClusterInput, ListClustersInput
from kconnect.api.discovery.exceptions import (
    InvalidClusterIdentifier,
    LookupFailed,
    SetupFailed
)
from kconnect.api.identity.base import Identity


CLUSTER_ARN = "arn:aws:eks:us-east-1:123456789012:cluster/my-cluster"


@pytest.mark.parametrize("cluster_id, expected", [
    ("aws:eks:us-east-1:123456789012:cluster/my-cluster", "my-cluster"),
    (CLUSTER_ARN, "my-cluster"),
    ("aws-cn:eks:cn-north-1:123456789012:cluster/other", "other"),
])
def test_translate_identifier(cluster_id, expected):
    assert eks.translate_identifier(cluster_id) == expected


@pytest.mark.parametrize("cluster_id", [
    # Three parts in the resource
    "aws:eks:us-east-1:123456789012:cluster/my-cluster/extra",
    # One part in the resource
    "aws:eks:us-east-1:123456789012:my-cluster",
    # Empty resource
    "aws:eks:us-east-1:123456789012:",
    # Empty cluster name or resource type
    "aws:eks:us-east-1:123456789012:cluster/",
    "aws:eks:us-east-1:123456789012:/my-cluster",
    # Not an ARN at all
    "my-cluster",
    "",
])
def test_translate_identifier_rejects_other_shapes(cluster_id):
    with pytest.raises(InvalidClusterIdentifier):
        eks.translate_identifier(cluster_id)


def make_identity():
    return eks.AWSIdentity(
        access_token = "session-token",
        expires_on = datetime.datetime.now(datetime.timezone.utc) + datetime.timedelta(hours = 1),
        provider_name = "aws-iam",
        aws_access_key_id = "AKIAEXAMPLE",
        aws_secret_access_key = "secret"
    )


def make_config_set(region = "us-east-1"):
    cs = eks.configuration_items()
    if region:
        cs.set_value("region", region)
    return cs


class FakeSession:
    """
    Stands in for a boto3 session, returning a pre-built (stubbed) client.
    """
    def __init__(self, client, **kwargs):
        self._client = client
        self.kwargs = kwargs
        self.client_threads = []

    def client(self, service_name, **kwargs):
        assert service_name == "eks"
        self.client_threads.append(threading.get_ident())
        return self._client


@pytest.fixture
def eks_client():
    session = boto3.session.Session(
        aws_access_key_id = "AKIAEXAMPLE",
        aws_secret_access_key = "secret",
        region_name = "us-east-1"
    )
    client = session.client("eks")
    with Stubber(client) as stubber:
        yield client, stubber


@pytest.fixture
def provider_and_sessions(eks_client):
    client, _ = eks_client
    sessions = []
    def session_factory(**kwargs):
        session = FakeSession(client, **kwargs)
        sessions.append(session)
        return session
    return eks.EKSClusterProvider(session_factory = session_factory), sessions


def cluster_response(name):
    return {
        "cluster": {
            "name": name,
            "arn": f"arn:aws:eks:us-east-1:123456789012:cluster/{name}",
            "endpoint": f"https://{name}.eks.example.com",
            "certificateAuthority": { "data": "Q0EgREFUQQ==" },
        }
    }


@pytest.mark.asyncio
async def test_get_cluster(eks_client, provider_and_sessions):
    _, stubber = eks_client
    provider, sessions = provider_and_sessions
    stubber.add_response("describe_cluster", cluster_response("my-cluster"), { "name": "my-cluster" })
    output = await provider.get_cluster(GetClusterInput(make_config_set(), make_identity(), CLUSTER_ARN))
    assert output.cluster.id == CLUSTER_ARN
    assert output.cluster.name == "my-cluster"
    assert output.cluster.control_plane_endpoint == "https://my-cluster.eks.example.com"
    assert output.cluster.certificate_authority_data == "Q0EgREFUQQ=="
    # The session is built from the identity
    assert sessions[0].kwargs == dict(
        aws_access_key_id = "AKIAEXAMPLE",
        aws_secret_access_key = "secret",
        aws_session_token = "session-token",
        region_name = "us-east-1"
    )
    stubber.assert_no_pending_responses()


@pytest.mark.asyncio
async def test_get_cluster_without_identity_uses_profile(eks_client, provider_and_sessions):
    _, stubber = eks_client
    provider, sessions = provider_and_sessions
    stubber.add_response("describe_cluster", cluster_response("my-cluster"), { "name": "my-cluster" })
    cs = make_config_set()
    cs.set_value("profile", "dev")
    await provider.get_cluster(GetClusterInput(cs, None, CLUSTER_ARN))
    assert sessions[0].kwargs == dict(profile_name = "dev", region_name = "us-east-1")


@pytest.mark.asyncio
async def test_get_cluster_wraps_backend_errors(eks_client, provider_and_sessions):
    _, stubber = eks_client
    provider, _ = provider_and_sessions
    stubber.add_client_error(
        "describe_cluster",
        service_error_code = "ResourceNotFoundException",
        service_message = "No cluster found for name: my-cluster.",
        http_status_code = 404
    )
    with pytest.raises(LookupFailed) as excinfo:
        await provider.get_cluster(GetClusterInput(make_config_set(), make_identity(), CLUSTER_ARN))
    assert "No cluster found for name: my-cluster." in str(excinfo.value)
    assert excinfo.value.__cause__ is not None


@pytest.mark.asyncio
async def test_get_cluster_rejects_bad_identifier_before_lookup(eks_client, provider_and_sessions):
    _, stubber = eks_client
    provider, _ = provider_and_sessions
    with pytest.raises(InvalidClusterIdentifier):
        await provider.get_cluster(GetClusterInput(
            make_config_set(),
            make_identity(),
            "aws:eks:us-east-1:123456789012:cluster/my-cluster/extra"
        ))
    stubber.assert_no_pending_responses()


@pytest.mark.asyncio
async def test_setup_requires_region(provider_and_sessions):
    provider, sessions = provider_and_sessions
    with pytest.raises(SetupFailed):
        await provider.get_cluster(GetClusterInput(make_config_set(region = None), make_identity(), CLUSTER_ARN))
    assert sessions == []


@pytest.mark.asyncio
async def test_setup_rejects_non_aws_identity(provider_and_sessions):
    provider, _ = provider_and_sessions
    identity = Identity(
        access_token = "token",
        expires_on = datetime.datetime.now(datetime.timezone.utc),
        provider_name = "aad"
    )
    with pytest.raises(SetupFailed) as excinfo:
        await provider.get_cluster(GetClusterInput(make_config_set(), identity, CLUSTER_ARN))
    assert "aad" in str(excinfo.value)


@pytest.mark.asyncio
async def test_list_clusters(eks_client, provider_and_sessions):
    _, stubber = eks_client
    provider, _ = provider_and_sessions
    stubber.add_response("list_clusters", { "clusters": ["one", "two"] })
    stubber.add_response("describe_cluster", cluster_response("one"), { "name": "one" })
    stubber.add_response("describe_cluster", cluster_response("two"), { "name": "two" })
    output = await provider.list_clusters(ListClustersInput(make_config_set(), make_identity()))
    assert [cluster.name for cluster in output.clusters] == ["one", "two"]
    stubber.assert_no_pending_responses()


@pytest.mark.asyncio
async def test_clients_are_created_off_the_event_loop(eks_client, provider_and_sessions):
    _, stubber = eks_client
    provider, sessions = provider_and_sessions
    stubber.add_response("describe_cluster", cluster_response("my-cluster"), { "name": "my-cluster" })
    stubber.add_response("list_clusters", { "clusters": [] })
    await provider.get_cluster(GetClusterInput(make_config_set(), make_identity(), CLUSTER_ARN))
    await provider.list_clusters(ListClustersInput(make_config_set(), make_identity()))
    threads = [thread for session in sessions for thread in session.client_threads]
    assert len(threads) == 2
    assert threading.get_ident() not in threads
