class WatcherError(Exception):
    """Base class for every error raised by the watcher."""


class MalformedEvent(WatcherError):
    """Required fields are absent; the event is dropped and never retried."""


class ResolverFailure(WatcherError):
    """An organization membership lookup did not complete."""


class InvalidDecisionState(WatcherError):
    """A decision was used in a way its action does not allow."""


class DispatchFailure(WatcherError):
    """A notification channel did not accept the payload."""


class DestinationConfigError(WatcherError):
    """A selected destination is missing required settings."""
