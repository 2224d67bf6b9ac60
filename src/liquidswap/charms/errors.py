"""Exceptions raised by the Charms spell proving client."""

from typing import Optional


class CharmsError(Exception):
    """Base exception for spell building, validation and proving."""

    pass


# ======================
# Local validation
# ======================


class SpellValidationError(CharmsError):
    """Exception raised when a spell fails local validation.

    Never retried: the caller has to fix the spell before resubmitting.
    """

    pass


class MalformedSpellError(SpellValidationError):
    """Exception raised when a spell is not a structured document."""

    pass


class MissingFieldError(SpellValidationError):
    """Exception raised when a required top-level field is absent."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Spell is missing required field '{field}'")


class UnresolvedPlaceholderError(SpellValidationError):
    """Exception raised when a rendered spell still contains ${...} tokens."""

    def __init__(self, names: list[str]):
        self.names = names
        joined = ", ".join(names)
        super().__init__(f"Spell has unresolved placeholders: {joined}")


class InvalidSpellStructureError(SpellValidationError):
    """Exception raised when apps/ins/outs sections are inconsistent."""

    pass


class InvalidProveRequestError(SpellValidationError):
    """Exception raised when funding details are out of range (e.g. fee_rate <= 0)."""

    pass


# ======================
# Response parsing
# ======================


class ResponseParseError(CharmsError):
    """Exception raised when a prover response cannot be used."""

    pass


class InvalidResponseError(ResponseParseError):
    """Prover response body is not a list of {hex, txid} records."""

    pass


class EmptyResponseError(ResponseParseError):
    """Prover response decoded to an empty transaction array."""

    def __init__(self, message: str = "Prover returned an empty transaction array"):
        super().__init__(message)


# ======================
# Proving
# ======================


class ProveError(CharmsError):
    """Exception raised when proving fails after all attempts.

    Attributes:
        attempts: Number of attempts made before giving up
    """

    def __init__(self, message: str, attempts: int = 0):
        self.attempts = attempts
        super().__init__(message)


class ProverNetworkError(ProveError):
    """Transport failure (connect, DNS, timeout) on every attempt."""

    pass


class ProverRejectedError(ProveError):
    """Prover answered with a non-success HTTP status on every attempt."""

    def __init__(self, status_code: int, body: str, attempts: int = 0):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Prover API error (HTTP {status_code}): {body}", attempts)


class MalformedResponseError(ProveError):
    """Prover answered 2xx with a body that is not a transaction list."""

    pass


class EmptyResultError(ProveError):
    """Prover answered 2xx with an empty transaction list on every attempt."""

    pass


class ProveCancelledError(ProveError):
    """Proving was aborted by the caller (cancel signal or deadline)."""

    def __init__(
        self,
        message: str = "Proving cancelled",
        attempts: int = 0,
        reason: Optional[str] = None,
    ):
        self.reason = reason
        super().__init__(message, attempts)
