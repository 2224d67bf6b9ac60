"""Charms prover client.

Submits rendered spells to the Charms proving service and returns the
transactions it produces. Proof generation is slow (minutes), so each
request gets a generous timeout, and failed attempts are retried with
exponential backoff.

In mock mode no network call is made: a single simulated transaction is
returned so that order flows can be developed without a live prover.
"""

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Awaitable, Callable, Coroutine, Mapping, Optional, Sequence

import httpx
from pydantic import ValidationError

from liquidswap.charms.errors import (
    EmptyResponseError,
    EmptyResultError,
    InvalidResponseError,
    InvalidProveRequestError,
    MalformedResponseError,
    ProveCancelledError,
    ProveError,
    ProverNetworkError,
    ProverRejectedError,
)
from liquidswap.charms.models import Chain, ClientMode, ProvedTransaction, SpellProveRequest
from liquidswap.charms.parser import parse_prove_response
from liquidswap.charms.retry import (
    AttemptOutcome,
    RetryDecision,
    RetryPolicy,
    RetryState,
    classify,
)
from liquidswap.charms.spell import render_spell, validate_spell

logger = logging.getLogger(__name__)

DEFAULT_PROVE_API_URL = "https://v8.charms.dev/spells/prove"
DEFAULT_TIMEOUT_SECONDS = 120.0

# Placeholder payload for simulated proofs
MOCK_TX_HEX = "0200000001..."


@dataclass
class AttemptResult:
    """What a single prover round trip produced."""

    outcome: AttemptOutcome
    transactions: Optional[list[ProvedTransaction]] = None
    error: Optional[Exception] = None
    status_code: Optional[int] = None
    body: str = ""


class CharmsProverClient:
    """Client for the Charms spell proving API.

    Configuration is fixed at construction. The client keeps no per-call
    state, so concurrent ``prove`` calls are safe; they share one HTTP
    connection pool.
    """

    def __init__(
        self,
        api_url: str = DEFAULT_PROVE_API_URL,
        mode: ClientMode = ClientMode.MOCK,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        retry_policy: Optional[RetryPolicy] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        """Initialize the prover client.

        Args:
            api_url: Prover endpoint receiving the POSTed spell
            mode: MOCK to fabricate proofs locally, LIVE to call the prover
            timeout: Per-request timeout in seconds
            retry_policy: Attempt ceiling and backoff schedule
            http_client: Shared HTTP client (created lazily if omitted)
            sleep: Coroutine used to wait between attempts
        """
        self.api_url = api_url
        self.mode = mode
        self.timeout = timeout
        self.retry_policy = retry_policy or RetryPolicy()
        self._client = http_client
        self._owns_client = http_client is None
        self._sleep = sleep or asyncio.sleep

    @property
    def is_mock(self) -> bool:
        return self.mode is ClientMode.MOCK

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
            self._owns_client = True
        return self._client

    def build_spell(self, template: str, variables: Mapping[str, str]) -> str:
        """Render a spell template with the given variables."""
        return render_spell(template, variables)

    def validate_spell(self, spell: str) -> None:
        """Validate a spell locally before proving.

        Raises:
            SpellValidationError: If the spell is malformed
        """
        validate_spell(spell)

    async def prove_spell(
        self,
        spell_template: str,
        variables: Mapping[str, str],
        prev_txs: Sequence[str],
        funding_utxo: str,
        funding_utxo_value: int,
        change_address: str,
        fee_rate: float,
        chain: Chain = Chain.BITCOIN,
        binaries: Optional[Mapping[str, bytes]] = None,
        *,
        cancel_event: Optional[asyncio.Event] = None,
        deadline: Optional[float] = None,
    ) -> list[ProvedTransaction]:
        """Render, validate and prove a spell.

        Args:
            spell_template: Spell YAML with ``${name}`` placeholders
            variables: Placeholder values
            prev_txs: Raw hex of the transactions spent by the spell
            funding_utxo: UTXO paying for the transactions (txid:vout)
            funding_utxo_value: Value of the funding UTXO in satoshis
            change_address: Address receiving the change
            fee_rate: Fee rate in sat/vB
            chain: Target chain
            binaries: App identifier -> compiled app binary
            cancel_event: Setting this event aborts the call
            deadline: Overall time limit in seconds

        Returns:
            Proved transactions, in signing/broadcast order

        Raises:
            SpellValidationError: Spell or funding details rejected locally
                (nothing sent)
            ProveError: Proving failed or was cancelled
        """
        spell = self.build_spell(spell_template, variables)
        self.validate_spell(spell)

        try:
            request = SpellProveRequest(
                spell=spell,
                binaries=dict(binaries or {}),
                prev_txs=list(prev_txs),
                funding_utxo=funding_utxo,
                funding_utxo_value=funding_utxo_value,
                change_address=change_address,
                fee_rate=fee_rate,
                chain=chain,
            )
        except ValidationError as e:
            raise InvalidProveRequestError(f"Invalid prove request: {e}") from e

        return await self.prove(request, cancel_event=cancel_event, deadline=deadline)

    async def prove(
        self,
        request: SpellProveRequest,
        *,
        cancel_event: Optional[asyncio.Event] = None,
        deadline: Optional[float] = None,
    ) -> list[ProvedTransaction]:
        """Prove a spell request.

        Args:
            request: Prover payload
            cancel_event: Setting this event aborts the in-flight request
                or pending backoff and raises ProveCancelledError
            deadline: Overall time limit in seconds, enforced the same way

        Returns:
            Non-empty list of proved transactions

        Raises:
            ProveError: Subclass describing the terminal failure
        """
        if self.is_mock:
            return self._mock_transactions()

        state = self.retry_policy.new_state()
        if cancel_event is None and deadline is None:
            return await self._prove_live(request, state)

        if cancel_event is not None and cancel_event.is_set():
            raise ProveCancelledError(
                "Proving cancelled before first attempt", attempts=0, reason="cancelled"
            )

        return await self._run_cancellable(
            self._prove_live(request, state), state, cancel_event, deadline
        )

    def _mock_transactions(self) -> list[ProvedTransaction]:
        txid = f"mock_{uuid.uuid4()}"
        logger.info(f"Mock mode: returning simulated proof {txid}")
        return [ProvedTransaction(hex=MOCK_TX_HEX, txid=txid)]

    async def _prove_live(
        self, request: SpellProveRequest, state: RetryState
    ) -> list[ProvedTransaction]:
        """Run the attempt loop until success or the attempt ceiling."""
        payload = request.model_dump(mode="json")
        client = await self._get_client()
        max_attempts = self.retry_policy.max_attempts

        while True:
            result = await self._attempt(client, payload, state.attempt)
            decision = classify(result.outcome, state, self.retry_policy)

            if decision is RetryDecision.SUCCEED:
                return result.transactions

            if decision is RetryDecision.FAIL:
                logger.error(
                    f"Prover failed after {state.attempt} attempt(s): {result.outcome.value}"
                )
                raise self._terminal_error(result, state.attempt) from result.error

            logger.warning(
                f"Prover attempt {state.attempt}/{max_attempts} failed "
                f"({result.outcome.value}), retrying in {state.backoff:.1f}s"
            )
            await self._sleep(state.backoff)
            state.advance(self.retry_policy.multiplier)

    async def _attempt(
        self, client: httpx.AsyncClient, payload: dict, attempt: int
    ) -> AttemptResult:
        """Perform one request/response round trip."""
        logger.debug(f"Prover attempt {attempt}: POST {self.api_url}")
        started = time.monotonic()

        try:
            response = await client.post(self.api_url, json=payload, timeout=self.timeout)
        except httpx.RequestError as e:
            logger.warning(f"Prover network error: {type(e).__name__}: {e}")
            return AttemptResult(AttemptOutcome.NETWORK_ERROR, error=e)

        if not response.is_success:
            body = response.text
            logger.warning(f"Prover API error: {response.status_code} {body[:200]}")
            return AttemptResult(
                AttemptOutcome.REMOTE_REJECTED,
                status_code=response.status_code,
                body=body,
            )

        try:
            transactions = parse_prove_response(response.content)
        except EmptyResponseError as e:
            logger.warning("Prover returned empty transaction array")
            return AttemptResult(AttemptOutcome.EMPTY_RESULT, error=e)
        except InvalidResponseError as e:
            logger.warning(f"Prover returned malformed JSON: {e}")
            return AttemptResult(AttemptOutcome.MALFORMED_RESPONSE, error=e)

        elapsed = time.monotonic() - started
        logger.info(
            f"Prover returned {len(transactions)} transaction(s) in {elapsed:.1f}s "
            f"(attempt {attempt})"
        )
        return AttemptResult(AttemptOutcome.SUCCESS, transactions=transactions)

    def _terminal_error(self, result: AttemptResult, attempts: int) -> ProveError:
        if result.outcome is AttemptOutcome.NETWORK_ERROR:
            return ProverNetworkError(
                f"Prover unreachable after {attempts} attempt(s): {result.error}", attempts
            )
        if result.outcome is AttemptOutcome.REMOTE_REJECTED:
            return ProverRejectedError(result.status_code, result.body, attempts)
        if result.outcome is AttemptOutcome.EMPTY_RESULT:
            return EmptyResultError(
                f"Prover returned an empty transaction array after {attempts} attempt(s)",
                attempts,
            )
        return MalformedResponseError(
            f"Prover returned a malformed response after {attempts} attempt(s): {result.error}",
            attempts,
        )

    async def _run_cancellable(
        self,
        coro: Coroutine,
        state: RetryState,
        cancel_event: Optional[asyncio.Event],
        deadline: Optional[float],
    ) -> list[ProvedTransaction]:
        """Run the attempt loop until it finishes, the event fires or the deadline passes."""
        task = asyncio.ensure_future(coro)
        waiters = {task}
        stopper = None
        if cancel_event is not None:
            stopper = asyncio.ensure_future(cancel_event.wait())
            waiters.add(stopper)

        try:
            await asyncio.wait(
                waiters, timeout=deadline, return_when=asyncio.FIRST_COMPLETED
            )
            if task.done():
                return task.result()
        finally:
            if stopper is not None:
                stopper.cancel()
            if not task.done():
                task.cancel()
                await asyncio.gather(task, return_exceptions=True)

        reason = "cancelled" if cancel_event is not None and cancel_event.is_set() else "deadline"
        logger.info(f"Proving aborted ({reason}) during attempt {state.attempt}")
        raise ProveCancelledError(
            f"Proving aborted ({reason}) during attempt {state.attempt}",
            attempts=state.attempt,
            reason=reason,
        )

    async def close(self) -> None:
        """Close the HTTP client if this client created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "CharmsProverClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(mode={self.mode.value}, url={self.api_url})"
