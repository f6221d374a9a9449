import base64
import json
import logging
import sys
from typing import Any, Dict, List

import functions_framework

from config import load_config
from handlers.access import process_access_event
from lib.errors import MalformedEvent
from lib.membership import make_resolver

cfg = load_config()
logging.basicConfig(level=cfg.log_level)
# one per process so cached membership sources survive across events
resolver = make_resolver(cfg)


def _is_cloudtrail_batch(msg: Dict[str, Any]) -> bool:
    return isinstance(msg.get("Records"), list)


def _is_access_event(msg: Dict[str, Any]) -> bool:
    detail = msg.get("detail") if isinstance(msg.get("detail"), dict) else msg
    return isinstance(detail.get("userIdentity"), dict)


def _process_one(record: Dict[str, Any]) -> str:
    try:
        decision = process_access_event(record, cfg, resolver=resolver)
    except MalformedEvent as e:
        logging.warning("Malformed access event dropped: %s", e)
        return "dropped"
    return f"{decision.action.value}/{decision.reason.value}"


def route(msg: Any) -> List[str]:
    """Dispatch a decoded message; returns one outcome string per processed record."""
    if not isinstance(msg, dict):
        logging.warning("Unrecognized message format; ignoring.")
        return []
    if _is_cloudtrail_batch(msg):
        return [_process_one(r) for r in msg["Records"] if isinstance(r, dict)]
    if _is_access_event(msg):
        return [_process_one(msg)]

    logging.warning("Unrecognized message format; ignoring.")
    return []


def lambda_handler(event, context):
    """EventBridge target: one CloudTrail event per invocation."""
    try:
        outcomes = route(event)
    except Exception as e:
        # Re-raise so async invocation retries delivery
        logging.exception("Unhandled error; will retry: %s", e)
        raise
    return {"statusCode": 200, "body": json.dumps(outcomes)}


@functions_framework.cloud_event
def handle_pubsub(event):
    raw = base64.b64decode(event.data["message"]["data"])

    try:
        msg = json.loads(raw)
    except json.JSONDecodeError:
        logging.warning("Non-JSON Pub/Sub message received; ignoring. Payload=%r", raw[:200])
        return  # ack and drop

    try:
        route(msg)
    except Exception as e:
        # Re-raise only for transient/unknown errors to trigger retry
        logging.exception("Unhandled error; will retry: %s", e)
        raise


if __name__ == "__main__":
    # usage: python main.py ./payload.json
    path = sys.argv[1] if len(sys.argv) > 1 else "tests/fixtures/eventbridge_cross_account_dynamodb.json"
    with open(path, "r", encoding="utf-8") as f:
        payload = json.load(f)

    print(lambda_handler(payload, None))
