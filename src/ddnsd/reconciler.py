"""
Create-or-update reconciliation of DNS records.

For each subdomain the provider is queried first; the record is left
alone if it already holds the desired value, updated if it holds another
value and created if it does not exist. Records are never deleted.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ddnsd.errors import ProviderError, ReconcileError
from ddnsd.models import (
    ReconcileAction,
    ReconcileOutcome,
    ReconcileStage,
    ReconcileTarget,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ddnsd.models import RecordType
    from ddnsd.providers.base import BaseDNSProvider


logger = logging.getLogger(__name__)


async def reconcile_one(
    provider: BaseDNSProvider,
    domain: str,
    subdomain: str,
    desired_value: str,
    record_type: RecordType,
    *,
    log: logging.Logger | logging.LoggerAdapter | None = None,
) -> ReconcileOutcome:
    """
    Bring one record to the desired value.

    Parameters
    ----------
    provider : BaseDNSProvider
        The provider adapter.
    domain : str
        The DNS zone.
    subdomain : str
        The host record name.
    desired_value : str
        The value the record should hold. Compared with the current value
        by exact string equality.
    record_type : RecordType
        The record type.
    log : logging.Logger | logging.LoggerAdapter | None, optional
        Logger to report to (e.g. a per-family adapter).

    Returns
    -------
    ReconcileOutcome
        The action taken (created, updated or unchanged).

    Raises
    ------
    ReconcileError
        If the query, create or update call fails.
    """
    log = log or logger
    target = ReconcileTarget(
        domain=domain,
        subdomain=subdomain,
        record_type=record_type,
        desired_value=desired_value,
    )

    try:
        record = await provider.get_record(domain, subdomain, record_type)
    except ProviderError as e:
        raise ReconcileError(ReconcileStage.QUERY, domain, subdomain, e) from e

    if record is not None:
        if record.value == desired_value:
            log.info("IP address unchanged for %s, no update needed", target.fqdn)
            return ReconcileOutcome(
                target=target,
                action=ReconcileAction.UNCHANGED,
                record_id=record.record_id,
            )

        try:
            await provider.update_record(
                record.record_id,
                domain,
                subdomain,
                record_type,
                desired_value,
            )
        except ProviderError as e:
            raise ReconcileError(ReconcileStage.UPDATE, domain, subdomain, e) from e

        log.info(
            "Record updated for %s, ID=%s (%s -> %s)",
            target.fqdn,
            record.record_id,
            record.value,
            desired_value,
        )
        return ReconcileOutcome(
            target=target,
            action=ReconcileAction.UPDATED,
            record_id=record.record_id,
            previous_value=record.value,
        )

    try:
        record_id = await provider.create_record(
            domain,
            subdomain,
            record_type,
            desired_value,
        )
    except ProviderError as e:
        raise ReconcileError(ReconcileStage.CREATE, domain, subdomain, e) from e

    log.info("Record created for %s, ID=%s", target.fqdn, record_id)
    return ReconcileOutcome(
        target=target,
        action=ReconcileAction.CREATED,
        record_id=record_id,
    )


async def reconcile_subdomains(
    provider: BaseDNSProvider,
    domain: str,
    subdomains: Sequence[str],
    desired_value: str,
    record_type: RecordType,
    *,
    log: logging.Logger | logging.LoggerAdapter | None = None,
) -> list[ReconcileOutcome]:
    """
    Reconcile each subdomain of a domain in order.

    A failure on one subdomain is logged and reported as a "failed"
    outcome; the remaining subdomains are still processed.

    Parameters
    ----------
    provider : BaseDNSProvider
        The provider adapter.
    domain : str
        The DNS zone.
    subdomains : Sequence[str]
        Host record names, processed sequentially.
    desired_value : str
        The value every record should hold.
    record_type : RecordType
        The record type.
    log : logging.Logger | logging.LoggerAdapter | None, optional
        Logger to report to.

    Returns
    -------
    list[ReconcileOutcome]
        One outcome per subdomain, in input order.
    """
    log = log or logger
    outcomes: list[ReconcileOutcome] = []

    for subdomain in subdomains:
        log.info("Processing subdomain: %s (%s)", subdomain, domain)
        try:
            outcome = await reconcile_one(
                provider,
                domain,
                subdomain,
                desired_value,
                record_type,
                log=log,
            )
        except ReconcileError as e:
            log.error(
                "Subdomain update failed: %s (%s) at stage %s - %s",
                e.subdomain,
                e.domain,
                e.stage,
                e.cause,
            )
            outcome = ReconcileOutcome(
                target=ReconcileTarget(
                    domain=domain,
                    subdomain=subdomain,
                    record_type=record_type,
                    desired_value=desired_value,
                ),
                action=ReconcileAction.FAILED,
                stage=e.stage,
                error=str(e.cause),
            )
        outcomes.append(outcome)

    return outcomes
