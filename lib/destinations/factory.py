import os
from typing import Dict, List

from ..formatter import AlertPayload
from .base import Destination
from .composite import CompositeDestination
from .email_dest import EmailDestination
from .slack_dest import SlackDestination
from .sns_dest import SnsDestination

REGISTRY = {
    "sns": SnsDestination,
    "slack": SlackDestination,
    "email": EmailDestination,
}


def _csv(name: str, default: str = "") -> List[str]:
    raw = os.getenv(name, default)
    return [x.strip().lower() for x in raw.split(",") if x.strip()]


def parse_filters(prefix: str) -> Dict[str, List[str]]:
    # Example envs:
    # DEST_SLACK_SERVICES=s3,dynamodb
    # DEST_EMAIL_SOURCE_ACCOUNTS=987654321098
    return {
        "services": _csv(f"{prefix}_SERVICES"),
        "source_accounts": _csv(f"{prefix}_SOURCE_ACCOUNTS"),
    }


def make_single_destination(kind: str) -> Destination:
    if kind not in REGISTRY:
        raise ValueError(f"Unknown destination type: {kind!r}")
    inst = REGISTRY[kind]()

    # Optional: decorate with a filter wrapper if any filters are set
    filters = parse_filters(f"DEST_{kind.upper()}")
    if any(filters.values()):
        inst = _FilterWrapper(inst, **filters)
    return inst


class _FilterWrapper(Destination):
    def __init__(self, inner: Destination, services: List[str], source_accounts: List[str]):
        self.inner = inner
        self.services = set(services)
        self.source_accounts = set(source_accounts)

    def send(self, payload: AlertPayload) -> None:
        if self.services and payload.service.lower() not in self.services:
            return
        if self.source_accounts and payload.source_account_id not in self.source_accounts:
            return
        self.inner.send(payload)


def make_destination() -> Destination:
    types = _csv("DEST_TYPES", os.getenv("DEST_TYPE", "sns"))
    if len(types) == 1:
        return make_single_destination(types[0])

    sinks = [make_single_destination(t) for t in types]
    return CompositeDestination(sinks)
