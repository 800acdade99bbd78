"""Inventory fetcher: RDS clusters and instances -> InventoryRecord.

Clusters come first, then instances, each in API order. When clusters are in
scope, instances that belong to a cluster (Aurora writers/readers) are left
out because the cluster already carries their engine version.

Any AWS error aborts the whole fetch with FetchError: a partial inventory would
publish a snapshot with resources silently missing.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Iterable, Iterator, List, Mapping, Optional, Sequence

import boto3  # type: ignore
from botocore.client import BaseClient  # type: ignore
from botocore.exceptions import (  # type: ignore
    BotoCoreError,
    ClientError,
    ConnectionClosedError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)

from core.errors import FetchError
from core.retry import retry_with_backoff
from eol_checkers.common import _client_region, _logger
from eol_checkers.models import InventoryRecord

DEFAULT_SCOPE = ("clusters", "instances")

# Worth another go once botocore's own retries are used up. Anything else,
# AccessDenied for instance, fails the fetch at once.
TRANSIENT_ERROR_CODES = frozenset({
    "Throttling",
    "ThrottlingException",
    "RequestLimitExceeded",
    "TooManyRequestsException",
    "InternalFailure",
    "ServiceUnavailable",
})
TRANSIENT_ERRORS = (
    ConnectionClosedError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)

__all__ = ["fetch_inventory", "rds_client", "DEFAULT_SCOPE"]


def rds_client(region: Optional[str] = None, config: Any = None) -> BaseClient:
    """Create the RDS client; region/credentials follow the boto3 default chain."""
    return boto3.client("rds", region_name=region, config=config)


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, ClientError):
        code = exc.response.get("Error", {}).get("Code", "")
        status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode") or 0
        return code in TRANSIENT_ERROR_CODES or status >= 500
    return isinstance(exc, TRANSIENT_ERRORS)


def _paginate(
    fetch_fn: Callable[..., Mapping[str, Any]],
    *,
    page_key: str,
    next_key: str = "Marker",
    logger: Optional[logging.Logger] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Iterator[Mapping[str, Any]]:
    """Generic paginator for RDS describe_* calls (Marker semantics)."""
    call = retry_with_backoff(
        exceptions=(ClientError, BotoCoreError),
        retry_if=_is_transient,
        logger=logger,
        sleep=sleep,
    )(fetch_fn)
    token: Optional[str] = None
    while True:
        params = {next_key: token} if token else {}
        page = call(**params)
        for item in page.get(page_key, []) or []:
            yield item
        token = page.get(next_key)
        if not token:
            break


def _records(
    items: Iterable[Mapping[str, Any]],
    *,
    id_key: str,
    kind: str,
    log: logging.Logger,
) -> List[InventoryRecord]:
    out: List[InventoryRecord] = []
    for item in items:
        ident = item.get(id_key)
        if not ident:
            log.warning("[inventory] %s without %s skipped", kind, id_key)
            continue
        out.append(InventoryRecord(
            identifier=str(ident),
            engine=str(item.get("Engine") or ""),
            engine_version=str(item.get("EngineVersion") or ""),
            kind=kind,
        ))
    return out


def fetch_inventory(
    rds: BaseClient,
    scope: Sequence[str] = DEFAULT_SCOPE,
    logger: Optional[logging.Logger] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> List[InventoryRecord]:
    """Return the current RDS inventory; raises FetchError on any AWS failure."""
    log = _logger(logger)
    region = _client_region(rds)
    records: List[InventoryRecord] = []
    try:
        if "clusters" in scope:
            clusters = _paginate(rds.describe_db_clusters, page_key="DBClusters", logger=log, sleep=sleep)
            records.extend(_records(clusters, id_key="DBClusterIdentifier", kind="cluster", log=log))
        if "instances" in scope:
            instances: Iterable[Mapping[str, Any]] = _paginate(
                rds.describe_db_instances, page_key="DBInstances", logger=log, sleep=sleep
            )
            if "clusters" in scope:
                instances = [i for i in instances if not i.get("DBClusterIdentifier")]
            records.extend(_records(instances, id_key="DBInstanceIdentifier", kind="instance", log=log))
    except (ClientError, BotoCoreError) as exc:
        raise FetchError("inventory", f"RDS describe failed in {region or 'default region'}: {exc}",
                         exc) from exc

    log.info("[inventory] %d resource(s) in %s", len(records), region or "default region")
    return records
