from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from .classifier import Action, Decision
from .console_url import cloudtrail_event_url
from .errors import InvalidDecisionState
from .normalizer import NOT_AVAILABLE, UNKNOWN, AccessEvent


@dataclass(frozen=True)
class AlertPayload:
    subject: str
    body: str
    # routing attributes, not rendered
    service: str = ""
    source_account_id: str = ""


def _event_time(event: AccessEvent) -> str:
    if event.event_time is None:
        return UNKNOWN
    return event.event_time.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def format_subject(event: AccessEvent) -> str:
    return f"Cross-Account Access Alert - Account {event.target_account_id}"


def format_body(event: AccessEvent, now: datetime) -> str:
    ident = event.identity
    link = cloudtrail_event_url(event.region, event.event_id) or NOT_AVAILABLE
    lines = [
        "CROSS-ACCOUNT ACCESS DETECTED",
        "",
        f"Alert Time: {now.astimezone(timezone.utc).strftime('%Y-%m-%d %H:%M:%S UTC')}",
        "",
        "ACCESS DETAILS:",
        f"- Source Account: {event.source_account_id}",
        f"- Target Account: {event.target_account_id}",
        f"- Event: {event.event_name}",
        f"- Service: {event.event_source or UNKNOWN}",
        f"- Event Time: {_event_time(event)}",
        f"- Region: {event.region}",
        "",
        "USER IDENTITY:",
        f"- Type: {ident.type.value}",
        f"- Principal ID: {ident.principal_id}",
        f"- ARN: {ident.arn}",
        f"- User Name: {ident.user_name or NOT_AVAILABLE}",
        "",
        "NETWORK DETAILS:",
        f"- Source IP: {event.source_ip}",
        f"- User Agent: {event.user_agent}",
        "",
        "RECOMMENDATION:",
        "Please review this access to ensure it is authorized. If this access is unexpected,",
        "consider reviewing your cross-account trust policies and access permissions.",
        "",
        f"CloudTrail Event: {link}",
    ]
    return "\n".join(lines) + "\n"


def format_alert(decision: Decision, now: Optional[datetime] = None) -> AlertPayload:
    """Render a Notify decision. Formatting an Ignore decision is a caller error."""
    if decision.action is not Action.NOTIFY:
        raise InvalidDecisionState(
            f"cannot format a {decision.action.value}/{decision.reason.value} decision"
        )
    event = decision.event
    now = now or datetime.now(timezone.utc)
    return AlertPayload(
        subject=format_subject(event),
        body=format_body(event, now),
        service=event.event_source,
        source_account_id=event.source_account_id,
    )
