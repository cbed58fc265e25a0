from random import uniform, randint
from decimal import Decimal
from loguru import logger
from web3 import Web3
from time import time

from modules.config import SwapConfig, TOKEN_ADDRESSES, DEX_ROUTER
from modules.retry import CustomError, retry
from modules.utils import async_sleeping, round_cut
from modules.wallet import Wallet, check_tx_result


FAUCET_MINT_SELECTOR = "0x1249c58b"

ROUTER_ABI = [{
    "inputs": [{
        "components": [
            {"internalType": "address", "name": "tokenIn", "type": "address"},
            {"internalType": "address", "name": "tokenOut", "type": "address"},
            {"internalType": "uint24", "name": "fee", "type": "uint24"},
            {"internalType": "address", "name": "recipient", "type": "address"},
            {"internalType": "uint256", "name": "deadline", "type": "uint256"},
            {"internalType": "uint256", "name": "amountIn", "type": "uint256"},
            {"internalType": "uint256", "name": "amountOutMinimum", "type": "uint256"},
            {"internalType": "uint160", "name": "sqrtPriceLimitX96", "type": "uint160"},
        ],
        "internalType": "struct ISwapRouter.ExactInputSingleParams",
        "name": "params",
        "type": "tuple",
    }],
    "name": "exactInputSingle",
    "outputs": [{"internalType": "uint256", "name": "amountOut", "type": "uint256"}],
    "stateMutability": "payable",
    "type": "function",
}]

router_contract = Web3().eth.contract(abi=ROUTER_ABI)


class TokenSwapper:
    def __init__(self, wallet: Wallet, config: SwapConfig):
        self.wallet = wallet
        self.config = config


    def token_address(self, symbol: str) -> str:
        if symbol not in TOKEN_ADDRESSES:
            raise CustomError(f'Unknown token "{symbol}"')
        return TOKEN_ADDRESSES[symbol]


    def random_amount(self, symbol: str) -> int:
        amounts = self.config.swap_amounts.get(symbol, {})
        min_amount = amounts.get("min", 0.01)
        max_amount = max(amounts.get("max", min_amount), min_amount)
        precision = self.config.decimal_precision.get(symbol, 4)

        amount = round_cut(uniform(min_amount, max_amount), precision)
        if amount <= 0:
            amount = Decimal(str(min_amount))
        logger.debug(f'[•] {self.wallet.address} | Random amount (precision {precision}): {amount} {symbol}')
        return Web3.to_wei(amount, 'ether')


    @retry("0G", to_raise=False)
    async def claim_token(self, symbol: str):
        logger.info(f'[•] {self.wallet.address} | Claiming {symbol} from faucet...')
        tx_result = await self.wallet.send_tx(
            to=self.token_address(symbol),
            data=FAUCET_MINT_SELECTOR,
            tx_label=f"claim {symbol}",
            default_gas=self.config.default_gas,
        )
        check_tx_result(tx_result, f"claim {symbol}")
        return True


    async def approve(self, symbol: str, amount: int):
        tx_result = await self.wallet.approve(
            token_address=self.token_address(symbol),
            spender=DEX_ROUTER,
            amount=amount,
            token_name=symbol,
        )
        if tx_result is not None:
            check_tx_result(tx_result, f"approve {symbol}")


    @retry("0G", to_raise=False)
    async def swap(self, from_token: str, to_token: str, amount: int | None = None):
        from_address = self.token_address(from_token)
        to_address = self.token_address(to_token)
        amount = amount or self.random_amount(from_token)

        balance = await self.wallet.get_token_balance(from_address)
        if balance <= 0:
            raise CustomError("Zero balance")
        if balance < amount:
            logger.warning(f'[-] {self.wallet.address} | Insufficient {from_token} balance, swapping whole balance')
            amount = balance

        await self.approve(from_token, amount)

        data = router_contract.functions.exactInputSingle((
            Web3.to_checksum_address(from_address),
            Web3.to_checksum_address(to_address),
            self.config.pool_fee,
            self.wallet.address,
            int(time()) + 3600,
            amount,
            1,
            0,
        ))._encode_transaction_data()

        logger.info(f'[•] {self.wallet.address} | Swap {Web3.from_wei(amount, "ether")} {from_token} -> {to_token}')
        tx_result = await self.wallet.send_tx(
            to=DEX_ROUTER,
            data=data,
            tx_label=f"swap {from_token} -> {to_token}",
            default_gas=self.config.default_gas,
        )
        check_tx_result(tx_result, f"swap {from_token} -> {to_token}")
        return True


    async def claim_all(self):
        tokens = self.config.faucet_tokens
        claimed = 0
        for index, symbol in enumerate(tokens):
            if await self.claim_token(symbol):
                claimed += 1
            if index < len(tokens) - 1:
                await async_sleeping(5, 10)

        logger.info(f'[•] {self.wallet.address} | Claimed {claimed}/{len(tokens)} faucet tokens')
        return claimed


    async def swap_all(self):
        pairs = self.config.swap_pairs
        swapped = 0
        for pair_index, pair in enumerate(pairs):
            from_token, to_token = pair["from"], pair["to"]
            swap_count = pair.get("count") or 1
            logger.debug(f'[•] {self.wallet.address} | Executing {swap_count} swaps for {from_token}-{to_token}')

            for index in range(swap_count):
                if await self.wallet.get_token_balance(self.token_address(from_token)) <= 0:
                    logger.warning(f'[-] {self.wallet.address} | Skipping remaining {from_token}-{to_token} swaps, zero balance')
                    break

                if await self.swap(from_token, to_token):
                    swapped += 1
                if index < swap_count - 1:
                    await async_sleeping(7, 15)

            if pair_index < len(pairs) - 1:
                await async_sleeping(7, 15)

        logger.info(f'[•] {self.wallet.address} | Completed {swapped} token swaps')
        return swapped


    async def run(self):
        self.wallet.nonce.reset(self.wallet.address)
        if self.config.enable_onchain_faucet:
            await self.claim_all()
            await async_sleeping(randint(3, 6))
        if self.config.enable_token_swap:
            await self.swap_all()
        return True
