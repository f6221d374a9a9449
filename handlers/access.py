import logging
from typing import Any, Dict, Optional

from config import Config
from lib.classifier import Action, Decision, classify
from lib.destinations.base import Destination
from lib.destinations.factory import make_destination
from lib.formatter import format_alert
from lib.membership import MembershipResolver, make_resolver
from lib.normalizer import normalize


def process_access_event(
        msg: Dict[str, Any],
        cfg: Config,
        resolver: Optional[MembershipResolver] = None,
        destination: Optional[Destination] = None,
) -> Decision:
    """Classify one CloudTrail access event and send an alert when it is external.

    Raises MalformedEvent for records without account ids; the caller drops them.
    """
    event = normalize(msg, default_target_account=cfg.current_account_id)
    decision = classify(event, cfg.monitored_services, cfg.org_context, resolver or make_resolver(cfg))

    if decision.action is Action.IGNORE:
        logging.info("Ignoring %s on %s from %s: %s", event.event_name, event.event_source or "unknown service",
                     event.source_account_id, decision.reason.value)
        return decision

    logging.warning("Cross-account access: %s called %s.%s in %s",
                    event.source_account_id, event.event_source, event.event_name, event.target_account_id)
    payload = format_alert(decision)
    dest = destination or make_destination()
    dest.send(payload)
    return decision
