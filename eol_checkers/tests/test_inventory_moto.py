"""Inventory fetcher against moto (in-memory AWS).

- Seeds an Aurora cluster with a member instance plus a standalone instance.
- Checks scope handling and that cluster members are not double counted.
- Checks that AWS errors surface as FetchError, retrying only transient ones.
"""

from __future__ import annotations

from typing import List

import boto3
import pytest
from botocore.exceptions import ClientError, NoCredentialsError
from moto import mock_aws

from core.errors import FetchError
from eol_checkers.inventory import fetch_inventory
from eol_checkers.models import InventoryRecord

REGION = "us-east-1"


@pytest.fixture(name="aws_env")
def fixture_aws_env(monkeypatch) -> None:
    for key, value in {
        "AWS_ACCESS_KEY_ID": "testing",
        "AWS_SECRET_ACCESS_KEY": "testing",
        "AWS_SESSION_TOKEN": "testing",
        "AWS_DEFAULT_REGION": REGION,
    }.items():
        monkeypatch.setenv(key, value)


def _seed(rds) -> None:
    rds.create_db_cluster(
        DBClusterIdentifier="orders-aurora",
        Engine="aurora-postgresql",
        EngineVersion="11.9",
        MasterUsername="admin",
        MasterUserPassword="supersecret123",
    )
    rds.create_db_instance(
        DBInstanceIdentifier="orders-aurora-1",
        DBInstanceClass="db.r5.large",
        Engine="aurora-postgresql",
        DBClusterIdentifier="orders-aurora",
    )
    rds.create_db_instance(
        DBInstanceIdentifier="billing-mysql",
        DBInstanceClass="db.t3.micro",
        Engine="mysql",
        EngineVersion="5.7.44",
        AllocatedStorage=20,
        MasterUsername="admin",
        MasterUserPassword="supersecret123",
    )


def _ids(records: List[InventoryRecord]) -> List[str]:
    return [r.identifier for r in records]


@pytest.mark.integration
def test_clusters_then_standalone_instances(aws_env):
    with mock_aws():
        rds = boto3.client("rds", region_name=REGION)
        _seed(rds)
        records = fetch_inventory(rds)

    assert _ids(records) == ["orders-aurora", "billing-mysql"]
    cluster, instance = records
    assert cluster == InventoryRecord("orders-aurora", "aurora-postgresql", "11.9", kind="cluster")
    assert instance == InventoryRecord("billing-mysql", "mysql", "5.7.44", kind="instance")


@pytest.mark.integration
def test_instances_only_scope_includes_cluster_members(aws_env):
    with mock_aws():
        rds = boto3.client("rds", region_name=REGION)
        _seed(rds)
        records = fetch_inventory(rds, scope=("instances",))

    assert sorted(_ids(records)) == ["billing-mysql", "orders-aurora-1"]
    assert {r.kind for r in records} == {"instance"}


@pytest.mark.integration
def test_clusters_only_scope(aws_env):
    with mock_aws():
        rds = boto3.client("rds", region_name=REGION)
        _seed(rds)
        records = fetch_inventory(rds, scope=("clusters",))

    assert _ids(records) == ["orders-aurora"]


@pytest.mark.integration
def test_empty_account(aws_env):
    with mock_aws():
        assert fetch_inventory(boto3.client("rds", region_name=REGION)) == []


class _FailingRDS:
    """Minimal stand-in whose describe call always fails with ``code``."""

    class meta:  # noqa: N801 - mirrors boto3 client attribute
        region_name = "eu-west-1"

    def __init__(self, code: str = "Throttling", status: int = 400) -> None:
        self.code = code
        self.status = status
        self.calls = 0

    def describe_db_clusters(self, **_kwargs):
        self.calls += 1
        raise ClientError(
            {
                "Error": {"Code": self.code, "Message": "boom"},
                "ResponseMetadata": {"HTTPStatusCode": self.status},
            },
            "DescribeDBClusters",
        )


def test_throttling_is_retried_then_becomes_fetch_error():
    rds = _FailingRDS()
    waits: List[float] = []
    with pytest.raises(FetchError) as info:
        fetch_inventory(rds, sleep=waits.append)
    assert info.value.source == "inventory"
    assert "eu-west-1" in str(info.value)
    assert isinstance(info.value.cause, ClientError)
    assert rds.calls == 3
    assert len(waits) == 2
    assert 2.0 <= waits[0] <= 3.0
    assert 4.0 <= waits[1] <= 6.0


def test_server_error_is_retried():
    rds = _FailingRDS(code="InternalError", status=503)
    waits: List[float] = []
    with pytest.raises(FetchError):
        fetch_inventory(rds, sleep=waits.append)
    assert rds.calls == 3


@pytest.mark.parametrize("code", ["AccessDenied", "InvalidClientTokenId", "DBClusterNotFoundFault"])
def test_permanent_errors_fail_without_retry(code):
    rds = _FailingRDS(code=code)
    waits: List[float] = []
    with pytest.raises(FetchError) as info:
        fetch_inventory(rds, sleep=waits.append)
    assert info.value.cause.response["Error"]["Code"] == code
    assert rds.calls == 1
    assert waits == []


def test_missing_credentials_fail_without_retry():
    class _NoCredentials(_FailingRDS):
        def describe_db_clusters(self, **_kwargs):
            self.calls += 1
            raise NoCredentialsError()

    rds = _NoCredentials()
    with pytest.raises(FetchError):
        fetch_inventory(rds, sleep=lambda _s: pytest.fail("must not sleep"))
    assert rds.calls == 1
