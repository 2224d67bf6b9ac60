"""Prover response parsing."""

from pydantic import TypeAdapter, ValidationError

from liquidswap.charms.errors import EmptyResponseError, InvalidResponseError
from liquidswap.charms.models import ProvedTransaction

_TRANSACTIONS = TypeAdapter(list[ProvedTransaction])


def parse_prove_response(body: bytes) -> list[ProvedTransaction]:
    """Decode a prover response body into proved transactions.

    Args:
        body: Raw response body, expected to be a JSON array of
            ``{"hex": ..., "txid": ...}`` objects

    Returns:
        Non-empty list of transactions, in the order they must be
        signed and broadcast

    Raises:
        InvalidResponseError: Body is not JSON or not a list of records
        EmptyResponseError: Body is a valid but empty JSON array
    """
    try:
        transactions = _TRANSACTIONS.validate_json(body)
    except ValidationError as e:
        raise InvalidResponseError(f"Malformed prover response: {e}") from e

    if not transactions:
        raise EmptyResponseError()

    return transactions
