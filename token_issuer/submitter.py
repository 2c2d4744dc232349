"""
Sign, send and confirm an assembled issuance.

One transmission per bundle, then poll the signature status until the network
reports it confirmed, it fails on-chain, or the bounded wait runs out. Nothing is
retried. After a timeout, network error or cancellation the on-chain outcome is
unknown: check `mint_exists` for the mint address before submitting again.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Callable

import httpx
from solana.exceptions import SolanaRpcException
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Confirmed
from solana.rpc.core import RPCException
from solana.rpc.types import TxOpts
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import Transaction
from solders.transaction_status import TransactionConfirmationStatus

from token_issuer.assembler import AssembledIssuance, IssuanceState
from token_issuer.errors import (
    ConfigurationError,
    ConfirmationTimeoutError,
    IssuanceError,
    NetworkError,
    RejectedError,
)
from token_issuer.logger import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIRM_TIMEOUT_SEC = 60.0
DEFAULT_CONFIRM_POLL_INTERVAL_SEC = 1.0

_CONFIRMED_STATUSES = (
    TransactionConfirmationStatus.Confirmed,
    TransactionConfirmationStatus.Finalized,
)
_TRANSPORT_ERRORS = (SolanaRpcException, httpx.HTTPError)


async def _call_rpc(call: Any) -> Any:
    """Await an RPC call, mapping transport failures and error payloads to NetworkError."""
    try:
        resp = await call
    except RPCException as e:
        raise NetworkError(f"RPC error: {e}") from e
    except _TRANSPORT_ERRORS as e:
        raise NetworkError(f"RPC endpoint unreachable: {e}") from e
    except (KeyError, TypeError, ValueError) as e:
        raise NetworkError(f"Malformed RPC response: {e}") from e
    if not hasattr(resp, "value"):
        raise NetworkError(f"RPC error response: {resp}")
    return resp


@dataclass(frozen=True)
class TransactionResult:
    """Outcome of one issuance. `error` holds the raised IssuanceError unchanged."""

    mint_address: Pubkey
    signature: Signature | None = None
    slot: int | None = None
    error: IssuanceError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def error_kind(self) -> str | None:
        return None if self.error is None else self.error.kind


class Submitter:
    """
    Sends assembled issuances. Tracks which mint addresses it has already claimed
    so that a replayed mint identity is rejected before touching the network.

    The set of spent mints lives as long as the Submitter and only grows. Hosts that
    keep one Submitter for many issuances can drop an entry with `forget` once the
    mint has been checked with `mint_exists`.
    """

    def __init__(
        self,
        client_factory: Callable[[str], Any] = AsyncClient,
        *,
        confirm_timeout: float = DEFAULT_CONFIRM_TIMEOUT_SEC,
        poll_interval: float = DEFAULT_CONFIRM_POLL_INTERVAL_SEC,
    ) -> None:
        self._client_factory = client_factory
        self._confirm_timeout = confirm_timeout
        self._poll_interval = poll_interval
        self._spent_mints: set[str] = set()

    async def submit(
        self,
        endpoint: str,
        assembled: AssembledIssuance,
        signing_credential: Keypair,
    ) -> TransactionResult:
        """Sign with the credential and the mint identity, send once, await confirmation."""
        mint_address = assembled.mint_address
        if signing_credential.pubkey() != assembled.request.authority:
            raise ConfigurationError(
                f"Signing key {signing_credential.pubkey()} is not the issuance authority {assembled.request.authority}"
            )
        if assembled.state is not IssuanceState.BUILT or str(mint_address) in self._spent_mints:
            raise RejectedError(f"Mint {mint_address} was already submitted; query it before retrying")
        # claimed before the first await so an overlapping submit of the same mint is refused
        self._spent_mints.add(str(mint_address))

        client = self._client_factory(endpoint)
        try:
            blockhash_resp = await _call_rpc(client.get_latest_blockhash(Confirmed))
            blockhash = blockhash_resp.value.blockhash

            message = Message.new_with_blockhash(
                assembled.instructions, signing_credential.pubkey(), blockhash
            )
            tx = Transaction([signing_credential, assembled.mint], message, blockhash)
            assembled.advance(IssuanceState.SIGNED)

            assembled.advance(IssuanceState.SUBMITTED)
            signature = await self._send(client, tx)
            logger.info("issuance_submitted", mint=str(mint_address), signature=str(signature))

            try:
                slot = await asyncio.wait_for(
                    self._await_confirmation(client, signature), timeout=self._confirm_timeout
                )
            except asyncio.TimeoutError as e:
                assembled.advance(IssuanceState.TIMED_OUT)
                logger.warning("issuance_confirm_timeout", mint=str(mint_address), signature=str(signature))
                raise ConfirmationTimeoutError(
                    f"Transaction {signature} not confirmed within {self._confirm_timeout:g}s; "
                    f"outcome unknown, query mint {mint_address} before retrying"
                ) from e
            except asyncio.CancelledError:
                logger.warning(
                    "issuance_confirm_cancelled",
                    mint=str(mint_address),
                    signature=str(signature),
                    note="outcome unknown",
                )
                raise

            assembled.advance(IssuanceState.CONFIRMED)
            logger.info("issuance_confirmed", mint=str(mint_address), signature=str(signature), slot=slot)
            return TransactionResult(mint_address=mint_address, signature=signature, slot=slot)
        except RejectedError:
            if assembled.state is IssuanceState.SUBMITTED:
                assembled.advance(IssuanceState.REJECTED)
            raise
        finally:
            if assembled.state is IssuanceState.BUILT:
                # nothing was signed or sent
                self._spent_mints.discard(str(mint_address))
            await client.close()

    def forget(self, mint_address: Pubkey | str) -> None:
        """Drop a mint from the spent set. Only after confirming its on-chain state."""
        self._spent_mints.discard(str(mint_address))

    async def _send(self, client: Any, tx: Transaction) -> Signature:
        opts = TxOpts(skip_confirmation=True, preflight_commitment=Confirmed)
        try:
            resp = await client.send_raw_transaction(bytes(tx), opts=opts)
        except RPCException as e:
            logger.warning("issuance_rejected", stage="preflight", error=str(e))
            raise RejectedError(f"Transaction rejected: {e}") from e
        except _TRANSPORT_ERRORS as e:
            raise NetworkError(f"Failed to transmit transaction: {e}") from e
        return resp.value

    async def _await_confirmation(self, client: Any, signature: Signature) -> int:
        while True:
            resp = await _call_rpc(client.get_signature_statuses([signature]))
            status = resp.value[0] if resp.value else None
            if status is not None:
                if status.err is not None:
                    logger.warning("issuance_rejected", stage="execution", signature=str(signature), error=str(status.err))
                    raise RejectedError(f"Transaction {signature} failed on-chain: {status.err}")
                if status.confirmation_status in _CONFIRMED_STATUSES:
                    return status.slot
            await asyncio.sleep(self._poll_interval)


_default_submitter = Submitter()


async def submit(endpoint: str, assembled: AssembledIssuance, signing_credential: Keypair) -> TransactionResult:
    """Submit through the process-wide Submitter."""
    return await _default_submitter.submit(endpoint, assembled, signing_credential)


async def mint_exists(
    endpoint: str,
    mint_address: Pubkey | str,
    client_factory: Callable[[str], Any] = AsyncClient,
) -> bool:
    """True if the mint account exists at confirmed commitment."""
    if isinstance(mint_address, str):
        try:
            mint_address = Pubkey.from_string(mint_address.strip())
        except ValueError as e:
            raise ConfigurationError(f"Invalid mint address: {mint_address!r}") from e
    client = client_factory(endpoint)
    try:
        resp = await _call_rpc(client.get_account_info(mint_address, commitment=Confirmed))
        return resp.value is not None
    finally:
        await client.close()
