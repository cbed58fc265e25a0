from random import randint, uniform
from base64 import b64encode
from hashlib import sha256
from loguru import logger
from os import urandom
from web3 import Web3

from modules.config import StorageConfig, STORAGE_CONTRACTS, STORAGE_INDEXERS
from modules.utils import async_sleeping
from modules.browser import Browser
from modules.wallet import Wallet


FLOW_ABI = [{
    "inputs": [{
        "components": [
            {"name": "size", "type": "uint256"},
            {"name": "tags", "type": "bytes"},
            {"components": [{"name": "hash", "type": "bytes32"}, {"name": "size", "type": "uint256"}], "name": "chunks", "type": "tuple[]"},
        ],
        "name": "submission",
        "type": "tuple",
    }],
    "name": "submit",
    "outputs": [],
    "stateMutability": "payable",
    "type": "function",
}]

flow_contract = Web3().eth.contract(abi=FLOW_ABI)


def generate_random_file() -> tuple[str, str]:
    filename = urandom(15).hex() + ".jpeg"
    content = b64encode(urandom(randint(10, 200))).decode()
    return filename, content


def encode_submission(file_content: str) -> tuple[str, bytes]:
    file_bytes = file_content.encode()
    file_hash = sha256(file_bytes).digest()
    data = flow_contract.functions.submit((len(file_bytes), b"", [(file_hash, 0)]))._encode_transaction_data()
    return data, file_hash


class StorageUploader:

    def __init__(self, wallet: Wallet, browser: Browser, config: StorageConfig):
        self.wallet = wallet
        self.browser = browser
        self.config = config

        if config.network not in STORAGE_CONTRACTS:
            raise ValueError(f'Unknown storage network "{config.network}"')
        self.contract_address = STORAGE_CONTRACTS[config.network]
        self.indexer_url = STORAGE_INDEXERS[config.network]

    async def upload_to_storage_node(self, file_content: str, root_hash: str) -> bool:
        result = await self.browser.execute(
            "POST",
            f"{self.indexer_url}/file/segment",
            json={
                "root": root_hash,
                "index": 0,
                "data": b64encode(file_content.encode()).decode(),
                "proof": [],
            },
            timeout=self.config.upload_timeout,
        )
        if not result.transport_completed:
            logger.error(f'[-] {self.wallet.address} | Error uploading to storage node')
            return False
        if result.response.status_code != 200:
            logger.error(f'[-] {self.wallet.address} | Storage node upload failed: {result.response.text[:200]}')
            return False
        return True

    async def upload_file(self, file_content: str) -> bool:
        data, file_hash = encode_submission(file_content)
        root_hash = Web3.to_hex(file_hash)
        logger.debug(f'[•] {self.wallet.address} | File size: {len(file_content.encode())} bytes, root hash: {root_hash}')

        tx_result = await self.wallet.send_tx(
            to=self.contract_address,
            data=data,
            value=Web3.to_wei(self.config.fee_ether, 'ether'),
            tx_label="storage submit",
            gas_limit=self.config.gas_limit,
        )
        if not tx_result.success:
            return False

        if await self.upload_to_storage_node(file_content, root_hash):
            logger.success(f'[+] {self.wallet.address} | Storage node upload successful: {root_hash}')
        else:
            logger.warning(f'[-] {self.wallet.address} | Storage node upload failed: {root_hash}')
        return True

    async def upload_random_files(self) -> bool:
        min_files = min(self.config.min_files, self.config.max_files)
        files_amount = randint(min_files, self.config.max_files)
        logger.info(f'[•] {self.wallet.address} | Uploading {files_amount} random files...')

        for index in range(files_amount):
            filename, content = generate_random_file()
            logger.debug(f'[•] {self.wallet.address} | Generated file {index + 1}/{files_amount}: {filename}')

            if not await self.upload_file(content):
                logger.error(f'[-] {self.wallet.address} | Upload {index + 1}/{files_amount} failed')
                return False

            if index < files_amount - 1:
                await async_sleeping(round(uniform(1, 10)))

        return True
