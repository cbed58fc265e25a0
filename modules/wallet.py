from web3.exceptions import TransactionNotFound
from eth_account import Account
from dataclasses import dataclass
from typing import Any, Optional
from loguru import logger
from enum import Enum
from web3 import Web3
import asyncio

from modules.retry import (
    TransactionError,
    TxBuildError,
    TxNotFoundError,
    AlreadyConfirmedError,
    BackoffPolicy,
    ErrorKind,
    classify_error,
)
from modules.rpc_initializer import RPCPool
from modules.nonce import NonceTracker
from modules.gas import GasOracle
from modules.config import BotConfig, CHAINS_DATA

MAX_UINT256 = 2 ** 256 - 1
MIN_REPLACEMENT_BUMP = 1.1

ERC20_ABI = [
    {"inputs": [{"internalType": "address", "name": "owner", "type": "address"}], "name": "balanceOf", "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}], "stateMutability": "view", "type": "function"},
    {"inputs": [{"internalType": "address", "name": "owner", "type": "address"}, {"internalType": "address", "name": "spender", "type": "address"}], "name": "allowance", "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}], "stateMutability": "view", "type": "function"},
    {"inputs": [{"internalType": "address", "name": "spender", "type": "address"}, {"internalType": "uint256", "name": "value", "type": "uint256"}], "name": "approve", "outputs": [{"internalType": "bool", "name": "", "type": "bool"}], "stateMutability": "nonpayable", "type": "function"},
]


class TxStatus(Enum):
    CONFIRMED_SUCCESS = "confirmed-success"
    CONFIRMED_REVERT = "confirmed-revert"
    UNCONFIRMED_TIMEOUT = "unconfirmed-timeout"
    SUBMISSION_ERROR = "submission-error"


@dataclass
class TxResult:
    status: TxStatus
    tx_hash: str | None = None
    receipt: Any = None
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.status is TxStatus.CONFIRMED_SUCCESS


@dataclass
class PendingTx:
    tx_hash: str
    nonce: int
    gas_price: int
    label: str = ""


@dataclass
class ReplacementResult:
    success: bool
    old_tx_hash: str
    new_tx_hash: str | None = None


def check_tx_result(tx_result: TxResult, action: str):
    if not tx_result.success:
        raise TransactionError(f'{action} failed', error_code=tx_result.error or tx_result.status.value)


def normalize_privatekey(privatekey: str) -> str:
    privatekey = privatekey.strip()
    if not privatekey.startswith("0x"):
        privatekey = "0x" + privatekey
    if len(privatekey) != 66:
        raise ValueError("Invalid private key format")
    return privatekey


class Wallet:

    def __init__(
            self,
            privatekey: str,
            rpc: RPCPool,
            config: BotConfig,
            backoff: BackoffPolicy | None = None,
    ):
        self.privatekey = normalize_privatekey(privatekey)
        self.account = Account.from_key(self.privatekey)
        self.address = self.account.address

        self.rpc = rpc
        self.config = config
        self.backoff = backoff or BackoffPolicy.from_config(config.backoff)
        self.nonce = NonceTracker(rpc)
        self.gas = GasOracle(rpc, config.gas, label=self.address)
        self.pending: dict[str, PendingTx] = {}
        self._chain_id = config.tx.chain_id

        logger_opt = logger.opt(colors=True)
        if rpc.proxy:
            logger_opt.debug(f'[•] <white>{self.address}</white> | <white>{rpc.proxy}</white> | Started')
        else:
            logger_opt.debug(f'[•] <white>{self.address}</white> | <red>No proxy</red> | Started')

    @property
    def web3(self):
        return self.rpc.web3

    def tx_link(self, tx_hash: str) -> str:
        return f'{CHAINS_DATA["0g"]["explorer"]}{tx_hash}'

    def rotate_rpc(self) -> bool:
        if not self.rpc.rotate():
            return False
        self.nonce.reset()
        logger.debug(f'[•] {self.address} | Using RPC {self.rpc.current()}, nonce cache reset')
        return True

    async def get_chain_id(self) -> int:
        if self._chain_id is None:
            self._chain_id = await self.web3.eth.chain_id
        return self._chain_id

    async def get_balance(self) -> int:
        return await self.web3.eth.get_balance(self.address)

    async def estimate_gas(self, tx: dict, default_gas: int | None = None) -> int:
        """
        Probe with a low gas price: some nodes inflate estimates at a high one.
        On failure rotates the RPC once, then falls back to the default gas limit.
        """
        probe = {**tx, "gasPrice": Web3.to_wei(self.config.tx.low_gas_probe_gwei, 'gwei')}
        default_gas = default_gas or self.config.tx.default_gas

        rotated = False
        while True:
            try:
                estimated = await self.web3.eth.estimate_gas(probe)
                gas_limit = int(estimated * self.config.tx.gas_buffer)
                logger.debug(f'[•] {self.address} | Estimated gas: {estimated}, with buffer: {gas_limit}')
                return gas_limit

            except Exception as err:
                logger.warning(f'[-] {self.address} | Gas estimation failed: {err}')
                if rotated or not self.rotate_rpc():
                    break
                rotated = True

        logger.warning(f'[•] {self.address} | Using default gas: {default_gas}')
        return default_gas

    async def send_raw_transaction(self, raw_tx: bytes) -> str:
        """Plain `eth_sendRawTransaction` over the provider, without web3 confirmation helpers."""
        try:
            response = await self.web3.provider.make_request("eth_sendRawTransaction", [Web3.to_hex(raw_tx)])
        except Exception as err:
            raise TransactionError('tx submission failed', error_code=str(err) or err.__class__.__name__)

        if response.get("error"):
            error = response["error"]
            message = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            raise TransactionError('tx submission failed', error_code=message)
        return response.get("result")

    async def mempool_status(self) -> Optional[dict]:
        """Non-standard `txpool_status`, many nodes don't expose it."""
        try:
            response = await self.web3.provider.make_request("txpool_status", [])
        except Exception:
            return None
        result = response.get("result")
        if not isinstance(result, dict):
            return None
        return {key: int(value, 16) if isinstance(value, str) else value for key, value in result.items()}

    async def send_tx(
            self,
            to: str | None,
            data: str = "0x",
            value: int = 0,
            tx_label: str = "",
            gas_multiplier: float | None = None,
            gas_limit: int | None = None,
            default_gas: int | None = None,
            receipt_attempts: int | None = None,
    ) -> TxResult:
        """
        Build, sign, submit and poll a transaction.

        Mempool-class submission errors (full mempool, underpriced, nonce too low) and
        RPC failures while building are retried on the next RPC as a new transaction with
        fresh nonce and escalated gas price, up to `tx.max_retries` attempts.
        Any other outcome is returned as is.
        """
        max_retries = max(1, self.config.tx.max_retries)
        result = None
        for attempt in range(max_retries):
            try:
                return await self._submit(
                    to=to,
                    data=data,
                    value=value,
                    tx_label=tx_label,
                    retry_attempt=attempt,
                    gas_multiplier=gas_multiplier,
                    gas_limit=gas_limit,
                    default_gas=default_gas,
                    receipt_attempts=receipt_attempts,
                )

            except TransactionError as err:
                # the reserved nonce slot was not used
                self.nonce.reset(self.address)
                result = TxResult(status=TxStatus.SUBMISSION_ERROR, error=str(err))
                if isinstance(err, TxBuildError):
                    error_kind = ErrorKind.TRANSIENT
                else:
                    error_kind = classify_error(err.error_code)
                    if error_kind is not ErrorKind.MEMPOOL:
                        logger.error(f'[-] {self.address} | {tx_label} tx failed: {err}')
                        return result

                logger.warning(f'[-] {self.address} | {tx_label} {error_kind.value} error: {err.error_code} '
                               f'[{attempt + 1}/{max_retries}]')
                if attempt + 1 >= max_retries:
                    break

                if error_kind is ErrorKind.MEMPOOL:
                    txpool = await self.mempool_status()
                    if txpool:
                        logger.debug(f'[•] {self.address} | Txpool status: {txpool}')

                wait_time = await self.backoff.wait(attempt, error_kind)
                logger.debug(f'[•] {self.address} | Waited {round(wait_time, 1)}s before resubmitting')
                self.rotate_rpc()

        logger.error(f'[-] {self.address} | {tx_label} tx failed after {max_retries} attempts')
        return result

    async def _submit(
            self,
            to: str | None,
            data: str,
            value: int,
            tx_label: str,
            retry_attempt: int,
            gas_multiplier: float | None,
            gas_limit: int | None,
            default_gas: int | None,
            receipt_attempts: int | None,
    ) -> TxResult:
        try:
            nonce = await self.nonce.next(self.address)
            gas_price = await self.gas.price(retry_attempt=retry_attempt, multiplier=gas_multiplier)

            tx = {
                "from": self.address,
                "data": data,
                "value": value,
                "chainId": await self.get_chain_id(),
                "nonce": nonce,
            }
            if to is not None:
                tx["to"] = Web3.to_checksum_address(to)
            tx["gas"] = gas_limit or await self.estimate_gas(tx, default_gas=default_gas)
            tx["gasPrice"] = gas_price

            signed_tx = self.account.sign_transaction(tx)
        except Exception as err:
            raise TxBuildError('tx build failed', error_code=str(err) or err.__class__.__name__)

        tx_hash = Web3.to_hex(signed_tx.hash)
        logger.debug(f'[•] {self.address} | {tx_label} tx created: {tx_hash}')

        self.nonce.advance(self.address)
        await self.send_raw_transaction(signed_tx.raw_transaction)
        logger.debug(f'[•] {self.address} | {tx_label} tx sent: {self.tx_link(tx_hash)}')

        receipt = await self.wait_for_tx(tx_hash, attempts=receipt_attempts)
        if receipt is None:
            self.pending[tx_hash] = PendingTx(tx_hash=tx_hash, nonce=nonce, gas_price=gas_price, label=tx_label)
            logger.warning(f'[-] {self.address} | {tx_label} tx not confirmed in time, it may still complete later: '
                           f'{self.tx_link(tx_hash)}')
            return TxResult(status=TxStatus.UNCONFIRMED_TIMEOUT, tx_hash=tx_hash, error="Transaction not confirmed")

        if receipt["status"] == 1:
            logger.success(f'[+] {self.address} | {tx_label} tx confirmed: {self.tx_link(tx_hash)}')
            if self.config.tx.confirm_delay:
                await asyncio.sleep(self.config.tx.confirm_delay)
            return TxResult(status=TxStatus.CONFIRMED_SUCCESS, tx_hash=tx_hash, receipt=receipt)

        logger.error(f'[-] {self.address} | {tx_label} tx reverted: {self.tx_link(tx_hash)}')
        return TxResult(status=TxStatus.CONFIRMED_REVERT, tx_hash=tx_hash, receipt=receipt,
                        error=f"Transaction reverted: {tx_hash}")

    async def wait_for_tx(self, tx_hash: str, attempts: int | None = None) -> Any:
        attempts = attempts or self.config.tx.receipt_attempts
        for attempt in range(1, attempts + 1):
            try:
                receipt = await self.web3.eth.get_transaction_receipt(tx_hash)
            except TransactionNotFound:
                receipt = None
            except Exception as err:
                logger.debug(f'[•] {self.address} | Checking tx status error: {err} [{attempt}/{attempts}]')
                receipt = None

            if receipt and receipt.get("blockNumber") is not None:
                return receipt

            if attempt < attempts:
                await asyncio.sleep(self.config.tx.receipt_interval)
        return None

    async def replace_tx(self, tx_hash: str, increase_factor: float | None = None) -> ReplacementResult:
        """
        Resubmit a stuck transaction with the same nonce and a higher gas price.
        Success means the node accepted it for broadcast, it is not polled.
        """
        increase_factor = increase_factor or self.config.tx.replace_increase

        try:
            original_tx = await self.web3.eth.get_transaction(tx_hash)
        except TransactionNotFound:
            original_tx = None
        if not original_tx:
            raise TxNotFoundError('tx replace failed', error_code=f'{tx_hash} not found')

        if original_tx["from"].lower() != self.address.lower():
            raise TransactionError('tx replace failed', error_code=f'{tx_hash} is not from {self.address}')

        try:
            receipt = await self.web3.eth.get_transaction_receipt(tx_hash)
        except TransactionNotFound:
            receipt = None
        if receipt and receipt.get("blockNumber") is not None:
            raise AlreadyConfirmedError('tx replace failed', error_code=f'{tx_hash} already confirmed')

        pending_tx = self.pending.get(tx_hash)
        if pending_tx and original_tx["nonce"] != pending_tx.nonce:
            raise TransactionError('tx replace failed',
                                   error_code=f'{tx_hash} has nonce {original_tx["nonce"]}, recorded {pending_tx.nonce}')

        # some nodes report a lower effective price for pending txs than the one we signed
        old_gas_price = max(original_tx["gasPrice"], pending_tx.gas_price if pending_tx else 0)
        new_gas_price = max(
            int(old_gas_price * increase_factor),
            int(old_gas_price * MIN_REPLACEMENT_BUMP),
            old_gas_price + 1,
        )

        tx = {
            "from": self.address,
            "data": Web3.to_hex(original_tx["input"]),
            "value": original_tx.get("value", 0),
            "chainId": await self.get_chain_id(),
            "nonce": original_tx["nonce"],
            "gas": original_tx["gas"],
            "gasPrice": new_gas_price,
        }
        if original_tx.get("to"):
            tx["to"] = original_tx["to"]

        signed_tx = self.account.sign_transaction(tx)
        new_tx_hash = Web3.to_hex(signed_tx.hash)
        try:
            await self.send_raw_transaction(signed_tx.raw_transaction)
        except TransactionError as err:
            logger.error(f'[-] {self.address} | Failed to replace {tx_hash}: {err}')
            return ReplacementResult(success=False, old_tx_hash=tx_hash)

        self.pending.pop(tx_hash, None)
        logger.success(f'[+] {self.address} | Replaced {tx_hash} with {self.tx_link(new_tx_hash)} '
                       f'({Web3.from_wei(old_gas_price, "gwei")} -> {Web3.from_wei(new_gas_price, "gwei")} gwei)')
        return ReplacementResult(success=True, old_tx_hash=tx_hash, new_tx_hash=new_tx_hash)

    async def replace_pending(self) -> list[ReplacementResult]:
        results = []
        for pending_tx in list(self.pending.values()):
            try:
                results.append(await self.replace_tx(pending_tx.tx_hash))
            except AlreadyConfirmedError:
                logger.debug(f'[•] {self.address} | {pending_tx.label} tx {pending_tx.tx_hash} landed, no replace needed')
            except TransactionError as err:
                logger.warning(f'[-] {self.address} | Could not replace {pending_tx.label} tx '
                               f'(nonce {pending_tx.nonce}): {err}')
            finally:
                self.pending.pop(pending_tx.tx_hash, None)
        return results

    def token_contract(self, token_address: str):
        return self.web3.eth.contract(address=Web3.to_checksum_address(token_address), abi=ERC20_ABI)

    async def get_token_balance(self, token_address: str) -> int:
        return await self.token_contract(token_address).functions.balanceOf(self.address).call()

    async def approve(self, token_address: str, spender: str, amount: int, token_name: str = "") -> Optional[TxResult]:
        """Approve max uint for `spender` unless the allowance already covers `amount`.

        Returns:
            TxResult of the approve tx, or None if no approval needed.
        """
        token_contract = self.token_contract(token_address)
        spender = Web3.to_checksum_address(spender)

        current_allowance = await token_contract.functions.allowance(self.address, spender).call()
        if current_allowance >= amount:
            logger.debug(f'[•] {self.address} | {token_name} already approved')
            return None

        data = token_contract.functions.approve(spender, MAX_UINT256)._encode_transaction_data()
        return await self.send_tx(to=token_address, data=data, tx_label=f"approve {token_name}")
