"""
Data models for ddnsd.

This module defines the core data structures shared by the provider
adapters, the reconciliation engine and the family orchestrator.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field


class RecordType(StrEnum):
    """
    Supported DNS record types.

    Attributes
    ----------
    A : str
        IPv4 address record.
    AAAA : str
        IPv6 address record.
    """

    A = "A"
    AAAA = "AAAA"


class AddressFamily(StrEnum):
    """
    IP address families, processed in declaration order.

    Attributes
    ----------
    IPV4 : str
        IPv4, reconciled as A records.
    IPV6 : str
        IPv6, reconciled as AAAA records.
    """

    IPV4 = "IPv4"
    IPV6 = "IPv6"

    @property
    def record_type(self) -> RecordType:
        """Get the record type implied by the family."""
        return RecordType.A if self is AddressFamily.IPV4 else RecordType.AAAA


class ReconcileAction(StrEnum):
    """Outcome of reconciling one subdomain."""

    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    FAILED = "failed"


class ReconcileStage(StrEnum):
    """Step of the reconciliation that talks to the provider."""

    QUERY = "query"
    CREATE = "create"
    UPDATE = "update"


class DNSRecord(BaseModel):
    """
    Current provider state of one (domain, subdomain, type) record.

    Attributes
    ----------
    record_id : str
        Provider-assigned record identifier.
    value : str
        Current record content.
    """

    record_id: str
    value: str

    model_config = {"frozen": True}


class ProviderCredentials(BaseModel):
    """
    Credentials handed to a provider adapter at construction.

    The meaning of the fields depends on the provider:

    - DNSPod: SecretId / SecretKey.
    - CloudFlare: Global API Key / account email.
    - Alibaba Cloud: AccessKeyId / AccessKeySecret.

    Attributes
    ----------
    secret_id : str
        Key identifier (CloudFlare: Global API Key).
    secret_key : str
        Secret key (CloudFlare: account email). Never included in the
        model repr.
    zone_id : str | None
        Optional zone identifier (CloudFlare only).
    """

    secret_id: str
    secret_key: str = Field(repr=False)
    zone_id: str | None = None

    model_config = {"frozen": True}


class ReconcileTarget(BaseModel):
    """
    Desired state of one record for one cycle.

    Attributes
    ----------
    domain : str
        The DNS zone (e.g., "example.com").
    subdomain : str
        The host record name (e.g., "home", "@").
    record_type : RecordType
        The record type implied by the address family.
    desired_value : str
        The IP address the record should hold.
    """

    domain: str
    subdomain: str
    record_type: RecordType
    desired_value: str

    model_config = {"frozen": True}

    @property
    def fqdn(self) -> str:
        """Get the fully qualified domain name."""
        if self.subdomain in {"@", ""}:
            return self.domain
        return f"{self.subdomain}.{self.domain}"


class ReconcileOutcome(BaseModel):
    """
    Result of reconciling one target.

    Attributes
    ----------
    target : ReconcileTarget
        The reconciled target.
    action : ReconcileAction
        What was done.
    record_id : str | None
        The record ID (known for every action except some failures).
    previous_value : str | None
        The replaced value (only for action=updated).
    stage : ReconcileStage | None
        The failing stage (only for action=failed).
    error : str | None
        The error message (only for action=failed).
    """

    target: ReconcileTarget
    action: ReconcileAction
    record_id: str | None = None
    previous_value: str | None = None
    stage: ReconcileStage | None = None
    error: str | None = None


class FamilyReport(BaseModel):
    """
    Result of one address family's run within a cycle.

    Attributes
    ----------
    family : AddressFamily
        The address family.
    ip : str | None
        The discovered public IP, or None if discovery failed.
    outcomes : list[ReconcileOutcome]
        Per-subdomain outcomes, in configuration order.
    error : str | None
        Family-level error (IP discovery failure).
    """

    family: AddressFamily
    ip: str | None = None
    outcomes: list[ReconcileOutcome] = Field(default_factory=list)
    error: str | None = None

    @property
    def succeeded(self) -> list[ReconcileOutcome]:
        """Get outcomes that did not fail."""
        return [o for o in self.outcomes if o.action != ReconcileAction.FAILED]

    @property
    def failed(self) -> list[ReconcileOutcome]:
        """Get failed outcomes."""
        return [o for o in self.outcomes if o.action == ReconcileAction.FAILED]


class CycleReport(BaseModel):
    """
    Result of one full update cycle.

    Attributes
    ----------
    families : list[FamilyReport]
        Reports of the families that ran, IPv4 first.
    duration : float
        Wall-clock duration in seconds.
    """

    families: list[FamilyReport] = Field(default_factory=list)
    duration: float = 0.0
