import logging
import os
import time

from botocore.exceptions import BotoCoreError, ClientError

from ..aws import sns_client
from ..errors import DestinationConfigError, DispatchFailure
from ..formatter import AlertPayload
from .base import Destination

SNS_SUBJECT_MAX = 100
ATTEMPTS = 3


class SnsDestination(Destination):
    def __init__(self, client=None):
        self.topic_arn = os.getenv("SNS_TOPIC_ARN")
        if not self.topic_arn:
            raise DestinationConfigError("SNS selected but SNS_TOPIC_ARN is not set.")
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = sns_client()
        return self._client

    def _attributes(self, payload: AlertPayload):
        attrs = {}
        # Subscription filter policies can match on these.
        if payload.service:
            attrs["service"] = {"DataType": "String", "StringValue": payload.service}
        if payload.source_account_id:
            attrs["source_account_id"] = {"DataType": "String", "StringValue": payload.source_account_id}
        return attrs

    def send(self, payload: AlertPayload) -> None:
        kwargs = dict(
            TopicArn=self.topic_arn,
            Subject=payload.subject[:SNS_SUBJECT_MAX],
            Message=payload.body,
            MessageAttributes=self._attributes(payload),
        )

        # retry up to 3 times with exponential backoff
        for attempt in range(ATTEMPTS):
            try:
                resp = self.client.publish(**kwargs)
            except (ClientError, BotoCoreError) as e:
                logging.warning("SNS publish error (attempt %s): %s", attempt + 1, e)
                if attempt == ATTEMPTS - 1:
                    raise DispatchFailure(f"SnsDestination: giving up after {ATTEMPTS} attempts: {e}") from e
                time.sleep(2 ** attempt)
                continue

            logging.info("SnsDestination: published message %s", resp.get("MessageId"))
            return
