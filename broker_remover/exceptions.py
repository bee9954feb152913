"""Error taxonomy for broker matching, automation and request tracking."""


class BrokerRemoverError(Exception):
    """Base class for all application errors."""


class ValidationError(BrokerRemoverError):
    """Input rejected before any side effect (bad email, URL, config, payload)."""


class NotFoundError(BrokerRemoverError):
    """A referenced broker or request does not exist."""

    def __init__(self, kind: str, identifier: object):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} not found: {identifier}")


class SimulatedAutomationFailure(BrokerRemoverError):
    """A simulated opt-out submission failed.

    Raised inside the automation engine only; callers see it as
    ``AutomationResult(success=False)``.
    """


class PersistenceError(BrokerRemoverError):
    """Repository I/O failed. Always propagated to the caller."""


class MetadataParseError(BrokerRemoverError):
    """A request's metadata column holds malformed JSON.

    Recovered locally by substituting empty metadata.
    """
