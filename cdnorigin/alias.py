"""DNS aliases that point domain names at a CloudFront distribution."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

TXT_OWNER_KEY = "cdn-origin-controller/owner"

RR_TYPE_A = "A"
RR_TYPE_AAAA = "AAAA"
RR_TYPE_TXT = "TXT"


@dataclass
class Entry:
    """An alias entry with all record types desired for it."""

    name: str
    types: list[str] = field(default_factory=list)


@dataclass
class Aliases:
    """All aliases which should be bound to a distribution."""

    target: str
    hosted_zone_id: str
    ownership_txt_value: str
    entries: list[Entry] = field(default_factory=list)

    def domains(self) -> list[str]:
        """Return the names of every entry."""
        return [e.name for e in self.entries]


def new_aliases(
    target: str,
    hosted_zone_id: str,
    txt_owner_value: str,
    domains: Iterable[str] | None,
    ipv6_enabled: bool,
) -> Aliases:
    """Build the aliases for ``domains`` pointing at ``target``."""
    types = [RR_TYPE_A, RR_TYPE_AAAA] if ipv6_enabled else [RR_TYPE_A]
    return Aliases(
        target=target,
        hosted_zone_id=hosted_zone_id,
        ownership_txt_value=f'"{TXT_OWNER_KEY}={txt_owner_value}"',
        entries=[Entry(name=normalize_domain(d), types=list(types)) for d in (domains or ())],
    )


def normalize_domains(domains: Iterable[str] | None) -> list[str]:
    """Ensure every domain ends with a trailing dot."""
    return [normalize_domain(d) for d in (domains or ())]


def normalize_domain(domain: str) -> str:
    """Append a trailing dot to ``domain`` unless it already has one."""
    return domain if domain.endswith(".") else domain + "."