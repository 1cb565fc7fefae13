"""
Update cycle orchestration.

One cycle processes the enabled address families strictly in order
(IPv4, then IPv6). For each family the public IP is discovered and every
configured subdomain is reconciled against it.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from ddnsd.errors import IPDiscoveryError
from ddnsd.ipcheck import fetch_public_ip
from ddnsd.logging_config import FamilyLogAdapter
from ddnsd.models import AddressFamily, CycleReport, FamilyReport
from ddnsd.reconciler import reconcile_subdomains

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from ddnsd.config import Config, FamilyConfig
    from ddnsd.providers.base import BaseDNSProvider

    IPResolver = Callable[[str, AddressFamily], Awaitable[str]]


logger = logging.getLogger(__name__)


async def run_family(
    provider: BaseDNSProvider,
    family: AddressFamily,
    family_config: FamilyConfig,
    resolve_ip: IPResolver = fetch_public_ip,
) -> FamilyReport:
    """
    Run the update for one address family.

    Parameters
    ----------
    provider : BaseDNSProvider
        The provider adapter.
    family : AddressFamily
        The address family to process.
    family_config : FamilyConfig
        Domain, subdomains and check URL of the family.
    resolve_ip : IPResolver, optional
        Coroutine function returning the public address for (url, family).

    Returns
    -------
    FamilyReport
        The discovered IP and per-subdomain outcomes. If IP discovery
        fails, `error` is set and no subdomain is processed.
    """
    log = FamilyLogAdapter(logger, family)
    log.info("Starting record update")

    try:
        ip = await resolve_ip(family_config.check_url, family)
    except IPDiscoveryError as e:
        log.error("Update failed: %s", e)
        log.info("Update completed")
        return FamilyReport(family=family, error=str(e))

    log.info("Current IP address: %s", ip)

    outcomes = await reconcile_subdomains(
        provider,
        family_config.domain,
        family_config.subdomains,
        ip,
        family.record_type,
        log=log,
    )

    report = FamilyReport(family=family, ip=ip, outcomes=outcomes)
    log.info(
        "Update completed (%d succeeded, %d failed)",
        len(report.succeeded),
        len(report.failed),
    )
    return report


async def run_cycle(
    provider: BaseDNSProvider,
    config: Config,
    resolve_ip: IPResolver = fetch_public_ip,
) -> CycleReport:
    """
    Run one full update cycle.

    Families run sequentially, never concurrently. A failure in one family
    does not prevent the other from running.

    Parameters
    ----------
    provider : BaseDNSProvider
        The provider adapter.
    config : Config
        Application configuration.
    resolve_ip : IPResolver, optional
        Coroutine function returning the public address for (url, family).

    Returns
    -------
    CycleReport
        Reports of the enabled families, in processing order.
    """
    start_time = time.monotonic()
    logger.info("[cycle] Update cycle started")

    reports: list[FamilyReport] = []
    for family in AddressFamily:
        family_config = config.family(family)
        if not family_config.enabled:
            continue
        reports.append(await run_family(provider, family, family_config, resolve_ip))

    duration = time.monotonic() - start_time
    logger.info("[cycle] Update cycle finished in %.2fs", duration)
    return CycleReport(families=reports, duration=duration)
