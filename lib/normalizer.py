import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from .errors import MalformedEvent

UNKNOWN = "Unknown"
NOT_AVAILABLE = "N/A"


class IdentityType(str, Enum):
    ASSUMED_ROLE = "AssumedRole"
    IAM_USER = "IAMUser"
    ROOT = "Root"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, value: Any) -> "IdentityType":
        for member in cls:
            if member.value == value:
                return member
        return cls.UNKNOWN


@dataclass(frozen=True)
class Identity:
    type: IdentityType
    principal_id: str
    arn: str
    user_name: Optional[str]


@dataclass(frozen=True)
class AccessEvent:
    source_account_id: str  # account of the calling identity
    target_account_id: str  # account owning the accessed resource
    event_name: str
    event_source: str  # short service id, e.g. "dynamodb"
    event_time: Optional[datetime]  # None when absent or unparsable
    source_ip: str
    user_agent: str
    identity: Identity
    region: str = UNKNOWN
    event_id: str = UNKNOWN


def _text(value: Any, default: str = UNKNOWN) -> str:
    if value is None:
        return default
    value = str(value).strip()
    return value or default


def _service_id(detail: Dict[str, Any], envelope_source: Any) -> str:
    """'dynamodb.amazonaws.com' or 'aws.dynamodb' -> 'dynamodb'; '' when neither is usable."""
    src = detail.get("eventSource")
    if isinstance(src, str) and src.strip():
        return src.strip().lower().split(".amazonaws.com")[0]
    if isinstance(envelope_source, str) and envelope_source.startswith("aws."):
        return envelope_source[len("aws."):].lower()
    return ""


def parse_event_time(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value.strip():
        return None
    raw = value.strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        ts = datetime.fromisoformat(raw)
    except ValueError:
        logging.debug("Unparsable eventTime %r; treating as unknown.", value)
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def normalize(raw: Any, default_target_account: Optional[str] = None) -> AccessEvent:
    """Build an AccessEvent from an EventBridge envelope or a bare CloudTrail record.

    Only the two account ids are mandatory; every other field falls back to
    "Unknown" so that classification can always complete.
    """
    if not isinstance(raw, dict):
        raise MalformedEvent(f"expected a JSON object, got {type(raw).__name__}")

    detail = raw.get("detail") if isinstance(raw.get("detail"), dict) else raw
    ui = detail.get("userIdentity") or {}
    if not isinstance(ui, dict):
        ui = {}

    source_account = _text(ui.get("accountId"), "")
    target_account = _text(
        detail.get("recipientAccountId") or raw.get("account") or default_target_account, ""
    )
    if not source_account:
        raise MalformedEvent("userIdentity.accountId is missing")
    if not target_account:
        raise MalformedEvent("recipientAccountId is missing and no current account is configured")

    user_name = ui.get("userName")
    identity = Identity(
        type=IdentityType.parse(ui.get("type")),
        principal_id=_text(ui.get("principalId")),
        arn=_text(ui.get("arn")),
        user_name=_text(user_name) if user_name else None,
    )

    return AccessEvent(
        source_account_id=source_account,
        target_account_id=target_account,
        event_name=_text(detail.get("eventName")),
        event_source=_service_id(detail, raw.get("source")),
        event_time=parse_event_time(detail.get("eventTime")),
        source_ip=_text(detail.get("sourceIPAddress")),
        user_agent=_text(detail.get("userAgent")),
        identity=identity,
        region=_text(detail.get("awsRegion") or raw.get("region")),
        event_id=_text(detail.get("eventID")),
    )
