from web3.middleware import ExtraDataToPOAMiddleware
from web3 import AsyncWeb3, AsyncHTTPProvider
from typing import Callable
from loguru import logger


def build_web3(rpc: str, proxy: str | None = None) -> AsyncWeb3:
    if proxy:
        provider = AsyncHTTPProvider(rpc, request_kwargs={"proxy": proxy})
    else:
        provider = AsyncHTTPProvider(rpc)
    web3 = AsyncWeb3(provider)
    web3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
    return web3


class RPCPool:
    """
    Ordered list of interchangeable RPC endpoints for one wallet session.

    Rotation changes which node sees our pending transactions, so whoever calls
    `rotate()` must reset its nonce cache afterwards.
    """

    def __init__(
            self,
            rpcs: list[str],
            rotate_enabled: bool = True,
            proxy: str | None = None,
            web3_factory: Callable[[str], AsyncWeb3] | None = None,
    ):
        if not rpcs:
            raise ValueError("At least one RPC is required")

        self.rpcs = list(rpcs)
        self.rotate_enabled = rotate_enabled
        self.proxy = proxy
        self.index = 0

        self._web3_factory = web3_factory or (lambda rpc: build_web3(rpc, self.proxy))
        self._connectors: dict[int, AsyncWeb3] = {}

    def current(self) -> str:
        return self.rpcs[self.index]

    @property
    def web3(self) -> AsyncWeb3:
        if self.index not in self._connectors:
            self._connectors[self.index] = self._web3_factory(self.current())
        return self._connectors[self.index]

    def rotate(self) -> bool:
        if not self.rotate_enabled or len(self.rpcs) < 2:
            return False

        old_rpc = self.current()
        self.index = (self.index + 1) % len(self.rpcs)
        logger.debug(f'[•] RPC | Switched {old_rpc} -> {self.current()}')
        return True
