import logging
from typing import List

from ..errors import DispatchFailure
from ..formatter import AlertPayload
from .base import Destination


class CompositeDestination(Destination):
    def __init__(self, destinations: List[Destination]):
        self.destinations = destinations

    def send(self, payload: AlertPayload) -> None:
        errors: List[str] = []
        for d in self.destinations:
            try:
                d.send(payload)
            except Exception as e:
                # one dead sink must not block the others
                logging.exception("destination_failed", extra={"dest": d.__class__.__name__})
                errors.append(f"{d.__class__.__name__}: {e}")

        if errors and len(errors) == len(self.destinations):
            raise DispatchFailure("all destinations failed: " + "; ".join(errors))
        if errors:
            logging.error("one_or_more_destinations_failed", extra={"errors": errors})
