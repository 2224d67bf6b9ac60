"""Spell validation and proving endpoints.

Each failure kind maps to its own status code so callers can tell a bad
spell from an unreachable or misbehaving prover.
"""

import base64
import binascii
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, Field, field_validator

from liquidswap.charms.client import CharmsProverClient
from liquidswap.charms.errors import (
    EmptyResultError,
    MalformedResponseError,
    MissingFieldError,
    ProveCancelledError,
    ProveError,
    ProverNetworkError,
    ProverRejectedError,
    SpellValidationError,
    UnresolvedPlaceholderError,
)
from liquidswap.charms.factory import create_prover_client
from liquidswap.charms.models import Chain, ProvedTransaction

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/spells")

# Non-standard "client closed request" status, as used by nginx
HTTP_499_CLIENT_CLOSED_REQUEST = 499
HTTP_422_UNPROCESSABLE = 422


class ValidateSpellRequest(BaseModel):
    """Spell to validate."""

    spell: str = Field(..., description="Rendered spell YAML")


class ValidateSpellResponse(BaseModel):
    """Result of local spell validation."""

    valid: bool


class ProveSpellRequest(BaseModel):
    """Spell template and funding details to prove."""

    spell_template: str = Field(..., description="Spell YAML with ${name} placeholders")
    variables: dict[str, str] = Field(default_factory=dict, description="Placeholder values")
    prev_txs: list[str] = Field(default_factory=list, description="Raw hex of spent transactions")
    funding_utxo: str = Field(..., min_length=1, description="Funding UTXO (txid:vout)")
    funding_utxo_value: int = Field(..., ge=0, description="Funding UTXO value in satoshis")
    change_address: str = Field(..., min_length=1, description="Change address")
    fee_rate: float = Field(..., gt=0, description="Fee rate in sat/vB")
    chain: Chain = Field(default=Chain.BITCOIN, description="Target chain")
    binaries: dict[str, str] = Field(
        default_factory=dict, description="App identifier -> base64 encoded app binary"
    )
    deadline_seconds: Optional[float] = Field(
        default=None, gt=0, description="Give up proving after this many seconds"
    )

    @field_validator("binaries")
    @classmethod
    def validate_binaries(cls, v: dict[str, str]) -> dict[str, str]:
        """Check every binary is valid base64."""
        for app_id, encoded in v.items():
            try:
                base64.b64decode(encoded, validate=True)
            except (binascii.Error, ValueError):
                raise ValueError(f"Binary for app '{app_id}' is not valid base64")
        return v

    def decoded_binaries(self) -> dict[str, bytes]:
        return {app_id: base64.b64decode(encoded) for app_id, encoded in self.binaries.items()}


class ProveSpellResponse(BaseModel):
    """Proved transactions, in signing/broadcast order."""

    success: bool
    transactions: list[ProvedTransaction] = Field(default_factory=list)
    mock: bool = False


def get_prover_client(request: Request) -> CharmsProverClient:
    """Return the application's prover client, creating it on first use."""
    client = getattr(request.app.state, "prover_client", None)
    if client is None:
        client = create_prover_client()
        request.app.state.prover_client = client
    return client


def _validation_error_detail(error: SpellValidationError) -> dict:
    detail = {"error": type(error).__name__, "message": str(error)}
    if isinstance(error, MissingFieldError):
        detail["field"] = error.field
    elif isinstance(error, UnresolvedPlaceholderError):
        detail["placeholders"] = error.names
    return detail


def _prove_error_to_http(error: ProveError) -> HTTPException:
    detail = {"error": type(error).__name__, "message": str(error), "attempts": error.attempts}

    if isinstance(error, ProverRejectedError):
        detail["remote_status"] = error.status_code
        detail["remote_body"] = error.body
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=detail)
    if isinstance(error, ProverNetworkError):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)
    if isinstance(error, (MalformedResponseError, EmptyResultError)):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=detail)
    if isinstance(error, ProveCancelledError):
        detail["reason"] = error.reason
        return HTTPException(status_code=HTTP_499_CLIENT_CLOSED_REQUEST, detail=detail)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


@router.post("/validate", response_model=ValidateSpellResponse)
async def validate_spell(
    body: ValidateSpellRequest,
    client: CharmsProverClient = Depends(get_prover_client),
) -> ValidateSpellResponse:
    """Validate a spell locally without contacting the prover."""
    try:
        client.validate_spell(body.spell)
    except SpellValidationError as e:
        raise HTTPException(
            status_code=HTTP_422_UNPROCESSABLE,
            detail=_validation_error_detail(e),
        )
    return ValidateSpellResponse(valid=True)


@router.post("/prove", response_model=ProveSpellResponse)
async def prove_spell(
    body: ProveSpellRequest,
    client: CharmsProverClient = Depends(get_prover_client),
) -> ProveSpellResponse:
    """Render, validate and prove a spell.

    Returns the transactions to sign, typically a commit transaction
    followed by the spell transaction.
    """
    try:
        transactions = await client.prove_spell(
            spell_template=body.spell_template,
            variables=body.variables,
            prev_txs=body.prev_txs,
            funding_utxo=body.funding_utxo,
            funding_utxo_value=body.funding_utxo_value,
            change_address=body.change_address,
            fee_rate=body.fee_rate,
            chain=body.chain,
            binaries=body.decoded_binaries(),
            deadline=body.deadline_seconds,
        )
    except SpellValidationError as e:
        raise HTTPException(
            status_code=HTTP_422_UNPROCESSABLE,
            detail=_validation_error_detail(e),
        )
    except ProveCancelledError as e:
        logger.info(f"Prove request cancelled: {e}")
        raise _prove_error_to_http(e)
    except ProveError as e:
        logger.error(f"Prove request failed: {type(e).__name__}: {e}")
        raise _prove_error_to_http(e)

    return ProveSpellResponse(success=True, transactions=transactions, mock=client.is_mock)
