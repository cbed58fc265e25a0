from unittest.mock import AsyncMock
from dataclasses import replace
from hashlib import sha256
from eth_abi import decode
from web3 import Web3
import pytest

from modules.config import SwapConfig, MintConfig, StorageConfig, TOKEN_ADDRESSES, DEX_ROUTER, DOMAIN_CONTRACT
from modules.wallet import TxResult, TxStatus
from modules.token_swapper import TokenSwapper, FAUCET_MINT_SELECTOR
from modules.deployer import ContractDeployer, SET_VALUE_SELECTOR, TRANSFER_GAS
from modules.storage import StorageUploader, encode_submission
from modules.minter import MintConfigurator, encode_domain_mint
from modules.utils import random_domain_name
from conftest import OTHER_ADDRESS, GWEI, make_response


CONFIRMED = TxResult(status=TxStatus.CONFIRMED_SUCCESS, tx_hash="0x1", receipt={"status": 1})
REVERTED = TxResult(status=TxStatus.CONFIRMED_REVERT, tx_hash="0x2", receipt={"status": 0}, error="reverted")


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    for module in ("modules.token_swapper", "modules.minter", "modules.deployer", "modules.storage"):
        monkeypatch.setattr(f"{module}.async_sleeping", AsyncMock())
    monkeypatch.setattr("modules.retry.pause", AsyncMock())


class TestTokenSwapper:
    @pytest.mark.asyncio
    async def test_claim_token(self, wallet):
        wallet.send_tx = AsyncMock(return_value=CONFIRMED)

        assert await TokenSwapper(wallet, SwapConfig()).claim_token("USDT") is True
        kwargs = wallet.send_tx.await_args.kwargs
        assert kwargs["to"] == TOKEN_ADDRESSES["USDT"]
        assert kwargs["data"] == FAUCET_MINT_SELECTOR

    @pytest.mark.asyncio
    async def test_claim_retried_on_revert(self, wallet):
        wallet.send_tx = AsyncMock(side_effect=[REVERTED, CONFIRMED])
        assert await TokenSwapper(wallet, SwapConfig()).claim_token("BTC") is True
        assert wallet.send_tx.await_count == 2

    @pytest.mark.asyncio
    async def test_unknown_token(self, wallet):
        wallet.send_tx = AsyncMock(return_value=CONFIRMED)
        assert await TokenSwapper(wallet, SwapConfig()).claim_token("DOGE") is False
        wallet.send_tx.assert_not_awaited()

    def test_random_amount_in_range(self, wallet):
        swapper = TokenSwapper(wallet, SwapConfig())
        for _ in range(20):
            amount = swapper.random_amount("BTC")
            assert Web3.to_wei(0.000001, "ether") <= amount <= Web3.to_wei(0.00001, "ether")
            assert amount % 10 ** 12 == 0

    @pytest.mark.asyncio
    async def test_swap_capped_to_balance(self, wallet):
        wallet.get_token_balance = AsyncMock(return_value=1000)
        wallet.approve = AsyncMock(return_value=None)
        wallet.send_tx = AsyncMock(return_value=CONFIRMED)

        assert await TokenSwapper(wallet, SwapConfig()).swap("USDT", "ETH", amount=10 ** 18) is True

        wallet.approve.assert_awaited_once()
        assert wallet.approve.await_args.kwargs["amount"] == 1000
        kwargs = wallet.send_tx.await_args.kwargs
        assert kwargs["to"] == DEX_ROUTER
        assert kwargs["data"].startswith("0x414bf389")
        token_in, token_out, fee, recipient, _, amount_in, min_out, _ = decode(
            ["(address,address,uint24,address,uint256,uint256,uint256,uint160)"],
            bytes.fromhex(kwargs["data"][10:]),
        )[0]
        assert token_in.lower() == TOKEN_ADDRESSES["USDT"].lower()
        assert token_out.lower() == TOKEN_ADDRESSES["ETH"].lower()
        assert fee == 3000
        assert recipient.lower() == wallet.address.lower()
        assert amount_in == 1000
        assert min_out == 1

    @pytest.mark.asyncio
    async def test_zero_balance_not_retried(self, wallet):
        wallet.get_token_balance = AsyncMock(return_value=0)
        wallet.send_tx = AsyncMock(return_value=CONFIRMED)

        assert await TokenSwapper(wallet, SwapConfig()).swap("USDT", "BTC") is False
        assert wallet.get_token_balance.await_count == 1
        wallet.send_tx.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_swap_all_skips_empty_pair(self, wallet):
        config = SwapConfig(swap_pairs=[{"from": "BTC", "to": "USDT", "count": 3}, {"from": "USDT", "to": "ETH", "count": 2}])
        swapper = TokenSwapper(wallet, config)
        wallet.get_token_balance = AsyncMock(side_effect=lambda token: 0 if token == TOKEN_ADDRESSES["BTC"] else 10 ** 18)
        swapper.swap = AsyncMock(return_value=True)

        assert await swapper.swap_all() == 2
        assert [call.args for call in swapper.swap.await_args_list] == [("USDT", "ETH"), ("USDT", "ETH")]

    @pytest.mark.asyncio
    async def test_run_resets_nonce(self, wallet):
        swapper = TokenSwapper(wallet, SwapConfig(enable_token_swap=False, faucet_tokens=["USDT"]))
        wallet.send_tx = AsyncMock(return_value=CONFIRMED)
        wallet.nonce._nonces[wallet.address] = 42

        assert await swapper.run() is True
        assert wallet.nonce.cached(wallet.address) is None
        assert wallet.send_tx.await_count == 1


class TestMintConfigurator:
    def test_domain_encoding(self):
        data = encode_domain_mint("alice")
        assert data.startswith(DOMAIN_CONTRACT["method_id"])
        assert decode(["string", "uint256", "uint256"], bytes.fromhex(data[10:])) == ("alice", 1, 1)

    @pytest.mark.parametrize("length", [2, 4, 8, 12])
    def test_random_domain_name(self, length):
        name = random_domain_name(length)
        assert len(name) == length
        assert name.isalnum() and name == name.lower()

    @pytest.mark.asyncio
    async def test_run_mints_within_counts(self, wallet):
        config = MintConfig(nft_count=[2, 2], domain_count=[1, 1])
        wallet.send_tx = AsyncMock(return_value=CONFIRMED)

        assert await MintConfigurator(wallet, config).run() is True

        calls = wallet.send_tx.await_args_list
        assert len(calls) == 3
        assert calls[0].kwargs["default_gas"] == 160000
        assert calls[2].kwargs["default_gas"] == 360000
        assert calls[2].kwargs["data"].startswith(DOMAIN_CONTRACT["method_id"])
        assert all(call.kwargs["gas_multiplier"] == 1.1 for call in calls)


class TestContractDeployer:
    @pytest.mark.asyncio
    async def test_deploy_and_interact(self, wallet, config):
        deployed = TxResult(status=TxStatus.CONFIRMED_SUCCESS, tx_hash="0x1", receipt={"status": 1, "contractAddress": OTHER_ADDRESS})
        wallet.send_tx = AsyncMock(side_effect=[deployed, CONFIRMED, CONFIRMED])
        deployer = ContractDeployer(wallet, replace(config, contract_interactions=[2, 2]))

        assert await deployer.run() is True

        deploy_call, *interact_calls = wallet.send_tx.await_args_list
        assert deploy_call.kwargs["to"] is None
        assert len(interact_calls) == 2
        for call in interact_calls:
            assert call.kwargs["to"] == OTHER_ADDRESS
            assert call.kwargs["data"].startswith(SET_VALUE_SELECTOR)

    @pytest.mark.asyncio
    async def test_deploy_without_address(self, wallet, config):
        wallet.send_tx = AsyncMock(return_value=CONFIRMED)
        assert await ContractDeployer(wallet, config).run() is False
        assert wallet.send_tx.await_count == 1

    @pytest.mark.asyncio
    async def test_transfer_to_self(self, wallet, config):
        wallet.get_balance = AsyncMock(return_value=10 ** 18)
        wallet.gas.price = AsyncMock(return_value=GWEI)
        wallet.send_tx = AsyncMock(return_value=CONFIRMED)

        assert await ContractDeployer(wallet, config).transfer_to_self() is True

        kwargs = wallet.send_tx.await_args.kwargs
        assert kwargs["to"] == wallet.address
        assert kwargs["gas_limit"] == TRANSFER_GAS
        assert kwargs["value"] == 10 ** 18 * 90 // 100 - TRANSFER_GAS * GWEI

    @pytest.mark.asyncio
    @pytest.mark.parametrize("balance", [0, 1000])
    async def test_transfer_nothing_to_send(self, wallet, config, balance):
        wallet.get_balance = AsyncMock(return_value=balance)
        wallet.gas.price = AsyncMock(return_value=GWEI)
        wallet.send_tx = AsyncMock(return_value=CONFIRMED)

        assert await ContractDeployer(wallet, config).transfer_to_self() is True
        wallet.send_tx.assert_not_awaited()


class TestStorageUploader:
    def test_encode_submission(self):
        data, file_hash = encode_submission("content")
        assert file_hash == sha256(b"content").digest()
        assert data.startswith("0x")
        assert file_hash.hex() in data

    @pytest.mark.asyncio
    async def test_upload_file(self, wallet, browser, session):
        wallet.send_tx = AsyncMock(return_value=CONFIRMED)
        session.request.return_value = make_response(200, {})
        uploader = StorageUploader(wallet, browser, StorageConfig())

        assert await uploader.upload_file("content") is True

        kwargs = wallet.send_tx.await_args.kwargs
        assert kwargs["value"] == Web3.to_wei("0.00001", "ether")
        assert kwargs["gas_limit"] == 500000
        segment = session.request.await_args.kwargs
        assert segment["url"].endswith("/file/segment")
        assert segment["json"]["root"] == "0x" + sha256(b"content").hexdigest()

    @pytest.mark.asyncio
    async def test_segment_failure_still_counts(self, wallet, browser, session):
        wallet.send_tx = AsyncMock(return_value=CONFIRMED)
        session.request.return_value = make_response(400, text="bad segment")

        assert await StorageUploader(wallet, browser, StorageConfig()).upload_file("content") is True

    @pytest.mark.asyncio
    async def test_upload_random_files_stops_on_failure(self, wallet, browser):
        wallet.send_tx = AsyncMock(side_effect=[CONFIRMED, REVERTED])
        uploader = StorageUploader(wallet, browser, StorageConfig(min_files=3, max_files=3))
        uploader.upload_to_storage_node = AsyncMock(return_value=True)

        assert await uploader.upload_random_files() is False
        assert wallet.send_tx.await_count == 2

    def test_unknown_network(self, wallet, browser):
        with pytest.raises(ValueError):
            StorageUploader(wallet, browser, StorageConfig(network="mainnet"))
