from abc import ABC, abstractmethod

from ..formatter import AlertPayload


class Destination(ABC):
    @abstractmethod
    def send(self, payload: AlertPayload) -> None:
        ...
