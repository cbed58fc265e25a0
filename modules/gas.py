from loguru import logger
from web3 import Web3

from modules.rpc_initializer import RPCPool
from modules.config import GasConfig


class GasOracle:

    def __init__(self, rpc: RPCPool, config: GasConfig, label: str = ""):
        self.rpc = rpc
        self.config = config
        self.label = label

    def _bounds(self) -> tuple[int | None, int | None]:
        min_wei = Web3.to_wei(self.config.min_gwei, 'gwei') if self.config.min_gwei is not None else None
        max_wei = Web3.to_wei(self.config.max_gwei, 'gwei') if self.config.max_gwei is not None else None
        return min_wei, max_wei

    async def price(self, retry_attempt: int = 0, multiplier: float | None = None) -> int:
        min_wei, max_wei = self._bounds()
        try:
            network_price = await self.rpc.web3.eth.gas_price
        except Exception as err:
            fallback = min_wei if min_wei is not None else Web3.to_wei(self.config.fallback_gwei, 'gwei')
            if max_wei is not None:
                fallback = min(fallback, max_wei)
            logger.warning(f'[-] {self.label} | Error getting gas price: {err}. '
                           f'Using fallback {Web3.from_wei(fallback, "gwei")} gwei')
            return int(fallback)

        if multiplier is None:
            multiplier = self.config.multiplier
        gas_price = int(network_price * multiplier * self.config.retry_increase ** retry_attempt)

        if min_wei is not None and gas_price < min_wei:
            logger.debug(f'[•] {self.label} | Gas price {Web3.from_wei(gas_price, "gwei")} gwei is below min, '
                         f'using {self.config.min_gwei} gwei')
            gas_price = int(min_wei)
        elif max_wei is not None and gas_price > max_wei:
            logger.warning(f'[•] {self.label} | Gas price {Web3.from_wei(gas_price, "gwei")} gwei is above max, '
                           f'using {self.config.max_gwei} gwei')
            gas_price = int(max_wei)
        else:
            logger.debug(f'[•] {self.label} | Network gas price: {Web3.from_wei(network_price, "gwei")} gwei, '
                         f'adjusted: {Web3.from_wei(gas_price, "gwei")} gwei')

        return gas_price
