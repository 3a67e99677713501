"""Operator endpoint policy: explicit disables plus an optional read-only switch."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace

from nadeko_connector.endpoints.catalog import Endpoint
from nadeko_connector.errors import EndpointDisabled, UnknownEndpoint


@dataclass(frozen=True)
class EndpointPolicy:
    """Which catalog endpoints are callable. Immutable once built."""

    disabled: frozenset[Endpoint] = field(default_factory=frozenset)
    read_only: bool = False

    @classmethod
    def from_names(cls, names: Iterable[str], *, read_only: bool = False) -> EndpointPolicy:
        """Build a policy from configured endpoint names.

        Raises:
            ValueError: If a configured name is not in the catalog.
        """
        disabled = set()
        for name in names:
            try:
                disabled.add(Endpoint.resolve(name))
            except UnknownEndpoint:
                msg = f"Unknown endpoint in disabled_endpoints: {name!r}"
                raise ValueError(msg) from None
        return cls(disabled=frozenset(disabled), read_only=read_only)

    def as_read_only(self) -> EndpointPolicy:
        return replace(self, read_only=True)

    @property
    def effective_disabled(self) -> frozenset[Endpoint]:
        if self.read_only:
            return self.disabled | {e for e in Endpoint if e.mutating}
        return self.disabled

    def is_enabled(self, endpoint: Endpoint) -> bool:
        return endpoint not in self.effective_disabled

    def ensure_enabled(self, endpoint: Endpoint) -> None:
        if not self.is_enabled(endpoint):
            msg = f"Endpoint {endpoint.value} is disabled."
            raise EndpointDisabled(msg)

    def enabled_endpoints(self) -> list[Endpoint]:
        return [e for e in Endpoint if self.is_enabled(e)]
