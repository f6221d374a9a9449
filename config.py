import logging
import os
from dataclasses import dataclass
from typing import FrozenSet, Optional, Tuple

from lib.membership import DEFAULT_TIMEOUT_SECONDS, MEMBERSHIP_SOURCES, OrganizationContext

DEFAULT_MONITORED_SERVICES = "dynamodb,s3,ec2,rds,lambda"


@dataclass(frozen=True)
class Config:
    dest_types: str
    log_level: int
    monitored_services: FrozenSet[str] = frozenset(DEFAULT_MONITORED_SERVICES.split(","))
    organization_id: Optional[str] = None
    current_account_id: Optional[str] = None
    membership_source: str = "organizations"
    trusted_account_ids: Tuple[str, ...] = ()
    membership_timeout: float = DEFAULT_TIMEOUT_SECONDS

    @property
    def org_context(self) -> OrganizationContext:
        return OrganizationContext(self.organization_id)


def _csv(raw: str) -> Tuple[str, ...]:
    return tuple(x.strip() for x in raw.split(",") if x.strip())


def load_config() -> Config:
    level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)
    dest_types = os.getenv("DEST_TYPES", os.getenv("DEST_TYPE", "sns"))
    services = _csv(os.getenv("MONITORED_SERVICES", DEFAULT_MONITORED_SERVICES).lower())
    try:
        timeout = float(os.getenv("MEMBERSHIP_TIMEOUT_SECONDS", str(DEFAULT_TIMEOUT_SECONDS)))
    except ValueError:
        logging.warning("Invalid MEMBERSHIP_TIMEOUT_SECONDS; using %s.", DEFAULT_TIMEOUT_SECONDS)
        timeout = DEFAULT_TIMEOUT_SECONDS
    membership_source = os.getenv("MEMBERSHIP_SOURCE", "organizations").strip().lower()
    if membership_source not in MEMBERSHIP_SOURCES:
        raise ValueError(f"Unknown MEMBERSHIP_SOURCE: {membership_source!r}; expected one of {MEMBERSHIP_SOURCES}")
    return Config(
        dest_types=dest_types,
        log_level=level,
        monitored_services=frozenset(services),
        organization_id=os.getenv("ORGANIZATION_ID", "").strip() or None,
        current_account_id=os.getenv("CURRENT_ACCOUNT_ID", "").strip() or None,
        membership_source=membership_source,
        trusted_account_ids=_csv(os.getenv("TRUSTED_ACCOUNT_IDS", "")),
        membership_timeout=timeout,
    )
