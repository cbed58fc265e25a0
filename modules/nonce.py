from loguru import logger

from modules.rpc_initializer import RPCPool


class NonceTracker:
    """
    Locally cached next nonce per address.

    Once cached, the network is not queried again until `reset()`. `advance()` is
    called right before submission to reserve the slot, so a quick retry never
    reuses a nonce whose transaction may still be propagating.
    """

    def __init__(self, rpc: RPCPool):
        self.rpc = rpc
        self._nonces: dict[str, int] = {}

    async def next(self, address: str) -> int:
        if address not in self._nonces:
            self._nonces[address] = await self.rpc.web3.eth.get_transaction_count(address, "pending")
            logger.debug(f'[•] {address} | Initial nonce from network: {self._nonces[address]}')
        return self._nonces[address]

    def advance(self, address: str):
        if address in self._nonces:
            self._nonces[address] += 1
            logger.debug(f'[•] {address} | Incremented nonce to: {self._nonces[address]}')

    def reset(self, address: str | None = None):
        if address is None:
            self._nonces.clear()
        else:
            self._nonces.pop(address, None)

    def cached(self, address: str) -> int | None:
        return self._nonces.get(address)
