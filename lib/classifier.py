from dataclasses import dataclass
from enum import Enum
from typing import AbstractSet

from .membership import MembershipResolver, OrganizationContext
from .normalizer import AccessEvent


class Action(str, Enum):
    IGNORE = "Ignore"
    NOTIFY = "Notify"


class Reason(str, Enum):
    SAME_ACCOUNT = "SameAccount"
    ORG_MEMBER = "OrgMember"
    UNMONITORED_SERVICE = "UnmonitoredService"
    CROSS_ACCOUNT_EXTERNAL = "CrossAccountExternal"


@dataclass(frozen=True)
class Decision:
    action: Action
    reason: Reason
    event: AccessEvent


def classify(
        event: AccessEvent,
        monitored_services: AbstractSet[str],
        org_context: OrganizationContext,
        resolver: MembershipResolver,
) -> Decision:
    """Apply the suppression rules in order; the first match wins.

    1. service not monitored (empty/unknown sources included) -> Ignore
    2. same source and target account                        -> Ignore
    3. source account is a member of the trusted organization -> Ignore
    4. anything else                                          -> Notify
    """
    if not event.event_source or event.event_source not in monitored_services:
        return Decision(Action.IGNORE, Reason.UNMONITORED_SERVICE, event)

    if event.source_account_id == event.target_account_id:
        return Decision(Action.IGNORE, Reason.SAME_ACCOUNT, event)

    if org_context.configured and resolver.is_member(event.source_account_id, org_context):
        return Decision(Action.IGNORE, Reason.ORG_MEMBER, event)

    return Decision(Action.NOTIFY, Reason.CROSS_ACCOUNT_EXTERNAL, event)
