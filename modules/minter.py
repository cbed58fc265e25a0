from random import randint
from eth_abi import encode
from loguru import logger
from web3 import Web3

from modules.config import MintConfig, NFT_CONTRACTS, DOMAIN_CONTRACT
from modules.utils import async_sleeping, random_domain_name
from modules.retry import retry
from modules.wallet import Wallet, check_tx_result


def encode_domain_mint(domain_name: str) -> str:
    # (name, years, flags) behind the registrar's fixed method id
    params = encode(["string", "uint256", "uint256"], [domain_name, 1, 1])
    return DOMAIN_CONTRACT["method_id"] + params.hex()


class MintConfigurator:
    def __init__(self, wallet: Wallet, config: MintConfig):
        self.wallet = wallet
        self.config = config


    @retry("0G", to_raise=False)
    async def mint_nft(self, contract: dict):
        logger.info(f'[•] {self.wallet.address} | Minting {contract["name"]} NFT...')
        tx_result = await self.wallet.send_tx(
            to=contract["address"],
            data=contract["method_id"],
            tx_label=f'mint {contract["name"]}',
            gas_multiplier=self.config.gas_price_multiplier,
            default_gas=self.config.nft_default_gas,
        )
        check_tx_result(tx_result, f'mint {contract["name"]}')
        return True


    @retry("0G", to_raise=False)
    async def mint_domain(self, domain_name: str):
        logger.info(f'[•] {self.wallet.address} | Minting domain "{domain_name}"...')
        tx_result = await self.wallet.send_tx(
            to=Web3.to_checksum_address(DOMAIN_CONTRACT["address"]),
            data=encode_domain_mint(domain_name),
            tx_label=f'mint domain {domain_name}',
            gas_multiplier=self.config.gas_price_multiplier,
            default_gas=self.config.domain_default_gas,
        )
        check_tx_result(tx_result, f'mint domain {domain_name}')
        return True


    async def mint_nfts(self):
        min_count = max(1, self.config.nft_count[0])
        mint_count = randint(min_count, max(min_count, self.config.nft_count[1]))
        logger.debug(f'[•] {self.wallet.address} | Will mint {mint_count} NFTs per contract')

        minted = 0
        for contract in NFT_CONTRACTS:
            for index in range(mint_count):
                if await self.mint_nft(contract):
                    minted += 1
                if index < mint_count - 1:
                    await async_sleeping(5, 15)
        return minted


    async def mint_domains(self):
        min_count = max(1, self.config.domain_count[0])
        mint_count = randint(min_count, max(min_count, self.config.domain_count[1]))
        min_length = max(2, self.config.domain_length[0])
        max_length = max(min_length, self.config.domain_length[1])
        logger.debug(f'[•] {self.wallet.address} | Will mint {mint_count} domains')

        minted = 0
        for index in range(mint_count):
            domain_name = random_domain_name(randint(min_length, max_length))
            if await self.mint_domain(domain_name):
                minted += 1
            if index < mint_count - 1:
                await async_sleeping(5, 15)

        logger.info(f'[•] {self.wallet.address} | Minted {minted}/{mint_count} domains')
        return minted


    async def run(self):
        self.wallet.nonce.reset(self.wallet.address)
        if self.config.enable_mint_nft:
            await self.mint_nfts()
        if self.config.enable_mint_nft and self.config.enable_mint_domain:
            await async_sleeping(5, 15)
        if self.config.enable_mint_domain:
            await self.mint_domains()
        return True
