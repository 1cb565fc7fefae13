"""Shared fixtures and test doubles."""

from __future__ import annotations

import logging

import pytest

from ddnsd.errors import ProviderQueryError, ProviderWriteError
from ddnsd.models import DNSRecord, RecordType
from ddnsd.providers.base import BaseDNSProvider


class FakeProvider(BaseDNSProvider):
    """
    In-memory provider that records every call.

    Records are keyed by (domain, subdomain, record_type). Subdomains listed
    in `fail_query` / `fail_write` raise the corresponding provider error.
    """

    def __init__(self) -> None:
        self.records: dict[tuple[str, str, RecordType], DNSRecord] = {}
        self.calls: list[tuple] = []
        self.fail_query: set[str] = set()
        self.fail_write: set[str] = set()
        self._next_id = 1000

    @property
    def name(self) -> str:
        return "fake"

    @property
    def write_calls(self) -> list[tuple]:
        return [c for c in self.calls if c[0] in {"create", "update"}]

    async def get_record(self, domain, subdomain, record_type):
        self.calls.append(("get", domain, subdomain, record_type))
        if subdomain in self.fail_query:
            raise ProviderQueryError("boom", self.name)
        return self.records.get((domain, subdomain, record_type))

    async def create_record(self, domain, subdomain, record_type, value):
        self.calls.append(("create", domain, subdomain, record_type, value))
        if subdomain in self.fail_write:
            raise ProviderWriteError("create rejected", self.name)
        record_id = str(self._next_id)
        self._next_id += 1
        self.records[(domain, subdomain, record_type)] = DNSRecord(
            record_id=record_id, value=value,
        )
        return record_id

    async def update_record(self, record_id, domain, subdomain, record_type, value):
        self.calls.append(("update", record_id, domain, subdomain, record_type, value))
        if subdomain in self.fail_write:
            raise ProviderWriteError("update rejected", self.name)
        self.records[(domain, subdomain, record_type)] = DNSRecord(
            record_id=record_id, value=value,
        )


@pytest.fixture
def fake_provider() -> FakeProvider:
    """Create an empty fake provider."""
    return FakeProvider()


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Undo `setup_logging()` side effects so caplog keeps working."""
    yield
    logger = logging.getLogger("ddnsd")
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
