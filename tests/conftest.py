from unittest.mock import AsyncMock, MagicMock
from dataclasses import replace
import pytest

from modules.config import BotConfig, HttpConfig
from modules.rpc_initializer import RPCPool
from modules.retry import BackoffPolicy
from modules.proxies import ProxyPool
from modules.browser import Browser
from modules.wallet import Wallet


PRIVATEKEY = "0x" + "11" * 32
OTHER_ADDRESS = "0x2222222222222222222222222222222222222222"
GWEI = 10 ** 9


class FakeEth:
    def __init__(self, gas_price: int = GWEI, chain_id: int = 16600):
        self.gas_price_mock = AsyncMock(return_value=gas_price)
        self.chain_id_mock = AsyncMock(return_value=chain_id)
        self.get_transaction_count = AsyncMock(return_value=0)
        self.estimate_gas = AsyncMock(return_value=50000)
        self.get_transaction_receipt = AsyncMock(return_value=None)
        self.get_transaction = AsyncMock(return_value=None)
        self.get_balance = AsyncMock(return_value=10 ** 18)

    @property
    def gas_price(self):
        return self.gas_price_mock()

    @property
    def chain_id(self):
        return self.chain_id_mock()


class FakeProvider:
    def __init__(self):
        self.make_request = AsyncMock(side_effect=self.respond)
        self.send_responses = []
        self.sent = []

    async def respond(self, method: str, params: list):
        if method == "eth_sendRawTransaction":
            self.sent.append(params[0])
            if self.send_responses:
                return self.send_responses.pop(0)
            return {"jsonrpc": "2.0", "id": len(self.sent), "result": "0x" + "ab" * 32}
        return {"jsonrpc": "2.0", "id": 0, "result": None}


class FakeWeb3:
    def __init__(self):
        self.eth = FakeEth()
        self.provider = FakeProvider()


def make_response(status_code: int = 200, json_data=None, text: str = ""):
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    if json_data is None:
        response.json = MagicMock(side_effect=ValueError("no json"))
    else:
        response.json = MagicMock(return_value=json_data)
    return response


def receipt(status: int = 1, block_number: int = 100, **kwargs):
    return {"status": status, "blockNumber": block_number, "transactionHash": "0x" + "ab" * 32, **kwargs}


@pytest.fixture
def fake_web3():
    return FakeWeb3()


@pytest.fixture
def config():
    config = BotConfig()
    config.tx = replace(config.tx, receipt_attempts=3, receipt_interval=0, confirm_delay=0)
    return config


@pytest.fixture
def backoff():
    return BackoffPolicy(base_wait_time=1, jitter=lambda: 1.0, sleeper=AsyncMock())


@pytest.fixture
def rpc(fake_web3):
    return RPCPool(["https://rpc1", "https://rpc2"], web3_factory=lambda url: fake_web3)


@pytest.fixture
def wallet(rpc, config, backoff):
    return Wallet(PRIVATEKEY, rpc=rpc, config=config, backoff=backoff)


@pytest.fixture
def session():
    session = MagicMock()
    session.request = AsyncMock(return_value=make_response(200, {}))
    session.close = AsyncMock()
    return session


@pytest.fixture
def browser(session, backoff):
    return Browser(
        proxies=ProxyPool(["user:pass@1.1.1.1:8080", "user:pass@2.2.2.2:8080"]),
        config=HttpConfig(max_retries=5),
        backoff=backoff,
        label="test",
        session=session,
    )
