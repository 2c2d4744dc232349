"""Fake async RPC client and signature-status builders shared by the test suites."""

from __future__ import annotations

import asyncio
from types import SimpleNamespace

from solana.rpc.core import RPCException
from solders.hash import Hash
from solders.transaction import Transaction
from solders.transaction_status import TransactionConfirmationStatus

class FakeLedger:
    """Mints that already exist on the fake network, shared across client instances."""

    def __init__(self) -> None:
        self.mints: set[str] = set()
        self.sent: list[Transaction] = []


class FakeRpcClient:
    """
    Minimal async stand-in for solana.rpc.async_api.AsyncClient.

    `statuses` is consumed one entry per get_signature_statuses call; the last entry
    repeats. Set `blockhash_error` / `send_error` / `status_error` to raise from that call.
    """

    def __init__(self, endpoint: str, ledger: FakeLedger, **behaviour) -> None:
        self.endpoint = endpoint
        self.ledger = ledger
        self.blockhash_error = behaviour.get("blockhash_error")
        self.send_error = behaviour.get("send_error")
        self.status_error = behaviour.get("status_error")
        self.statuses = list(behaviour.get("statuses") or [confirmed_status()])
        self.closed = False
        self.status_calls = 0

    async def get_latest_blockhash(self, commitment=None):
        await asyncio.sleep(0)
        if self.blockhash_error is not None:
            raise self.blockhash_error
        return SimpleNamespace(value=SimpleNamespace(blockhash=Hash.new_unique(), last_valid_block_height=100))

    async def send_raw_transaction(self, raw: bytes, opts=None):
        if self.send_error is not None:
            raise self.send_error
        tx = Transaction.from_bytes(raw)
        tx.verify()
        signers = tx.message.account_keys[: tx.message.header.num_required_signatures]
        mint_keys = {str(k) for k in signers[1:]}
        if mint_keys & self.ledger.mints:
            raise RPCException("Transaction simulation failed: account already in use")
        self.ledger.mints |= mint_keys
        self.ledger.sent.append(tx)
        return SimpleNamespace(value=tx.signatures[0])

    async def get_signature_statuses(self, signatures, search_transaction_history=False):
        if self.status_error is not None:
            raise self.status_error
        self.status_calls += 1
        status = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        return SimpleNamespace(value=[status])

    async def get_account_info(self, pubkey, commitment=None, encoding="base64", data_slice=None):
        return SimpleNamespace(value=SimpleNamespace(owner=None) if str(pubkey) in self.ledger.mints else None)

    async def close(self) -> None:
        self.closed = True


def confirmed_status(slot: int = 4242, err=None, status=TransactionConfirmationStatus.Confirmed):
    return SimpleNamespace(slot=slot, err=err, confirmation_status=status)


def processed_status(slot: int = 4241):
    return SimpleNamespace(slot=slot, err=None, confirmation_status=TransactionConfirmationStatus.Processed)
