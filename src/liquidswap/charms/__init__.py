"""Charms spell building, validation and proving.

Flow: template + variables -> render_spell -> validate_spell ->
CharmsProverClient.prove -> list[ProvedTransaction].
"""

from liquidswap.charms.client import CharmsProverClient
from liquidswap.charms.errors import (
    CharmsError,
    EmptyResponseError,
    EmptyResultError,
    InvalidProveRequestError,
    InvalidResponseError,
    InvalidSpellStructureError,
    MalformedResponseError,
    MalformedSpellError,
    MissingFieldError,
    ProveCancelledError,
    ProveError,
    ProverNetworkError,
    ProverRejectedError,
    ResponseParseError,
    SpellValidationError,
    UnresolvedPlaceholderError,
)
from liquidswap.charms.factory import create_prover_client, create_retry_policy
from liquidswap.charms.models import Chain, ClientMode, ProvedTransaction, SpellProveRequest
from liquidswap.charms.parser import parse_prove_response
from liquidswap.charms.retry import RetryPolicy
from liquidswap.charms.spell import find_placeholders, render_spell, validate_spell

__all__ = [
    # Client
    "CharmsProverClient",
    "create_prover_client",
    "create_retry_policy",
    "RetryPolicy",
    # Models
    "Chain",
    "ClientMode",
    "ProvedTransaction",
    "SpellProveRequest",
    # Spells
    "render_spell",
    "find_placeholders",
    "validate_spell",
    "parse_prove_response",
    # Errors
    "CharmsError",
    "SpellValidationError",
    "MalformedSpellError",
    "MissingFieldError",
    "UnresolvedPlaceholderError",
    "InvalidSpellStructureError",
    "InvalidProveRequestError",
    "ResponseParseError",
    "InvalidResponseError",
    "EmptyResponseError",
    "ProveError",
    "ProverNetworkError",
    "ProverRejectedError",
    "MalformedResponseError",
    "EmptyResultError",
    "ProveCancelledError",
]
