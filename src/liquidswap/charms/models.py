"""Wire models for the Charms prover API."""

from enum import Enum

from pydantic import BaseModel, Field, field_serializer


class ClientMode(str, Enum):
    """Whether the prover client performs real network I/O."""

    MOCK = "mock"
    LIVE = "live"

    @classmethod
    def from_flag(cls, mock_mode: bool) -> "ClientMode":
        return cls.MOCK if mock_mode else cls.LIVE


class Chain(str, Enum):
    """Target chain identifier, as the prover spells it."""

    BITCOIN = "Bitcoin"
    CARDANO = "Cardano"


class SpellProveRequest(BaseModel):
    """Payload POSTed to the prover.

    ``binaries`` maps an app identifier to its compiled binary. The prover
    expects raw byte sequences, so they go out as JSON arrays of integers.
    """

    spell: str = Field(..., description="Rendered spell document (YAML)")
    binaries: dict[str, bytes] = Field(
        default_factory=dict, description="App identifier -> compiled app binary"
    )
    prev_txs: list[str] = Field(
        default_factory=list, description="Raw hex of transactions spent by the spell"
    )
    funding_utxo: str = Field(..., description="Funding UTXO reference (txid:vout)")
    funding_utxo_value: int = Field(..., ge=0, description="Funding UTXO value in satoshis")
    change_address: str = Field(..., description="Address receiving the change")
    fee_rate: float = Field(..., gt=0, description="Fee rate in sat/vB")
    chain: Chain = Field(default=Chain.BITCOIN, description="Target chain")

    @field_serializer("binaries")
    def _serialize_binaries(self, binaries: dict[str, bytes]) -> dict[str, list[int]]:
        return {app_id: list(binary) for app_id, binary in binaries.items()}


class ProvedTransaction(BaseModel):
    """A transaction returned by the prover."""

    hex: str = Field(..., description="Hex-encoded transaction")
    txid: str = Field(..., description="Transaction id")
