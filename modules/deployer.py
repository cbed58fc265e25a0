from random import randint
from eth_abi import encode
from loguru import logger
from web3 import Web3

from modules.retry import CustomError, retry
from modules.wallet import Wallet, check_tx_result
from modules.config import BotConfig
from modules.utils import async_sleeping


# uint256 storage with set(uint256) / get()
STORAGE_CONTRACT_BYTECODE = "0x608060405234801561001057600080fd5b50610150806100206000396000f3fe608060405234801561001057600080fd5b50600436106100365760003560e01c806360fe47b11461003b5780636d4ce63c14610057575b600080fd5b610055600480360381019061005091906100c3565b610075565b005b61005f61007f565b60405161006c91906100ff565b60405180910390f35b8060008190555050565b60008054905090565b600080fd5b6000819050919050565b6100a08161008d565b81146100ab57600080fd5b50565b6000813590506100bd81610097565b92915050565b6000602082840312156100d9576100d8610088565b5b60006100e7848285016100ae565b91505092915050565b6100f98161008d565b82525050565b600060208201905061011460008301846100f0565b9291505056fe"
SET_VALUE_SELECTOR = "0x60fe47b1"
TRANSFER_GAS = 21000


class ContractDeployer:
    def __init__(self, wallet: Wallet, config: BotConfig):
        self.wallet = wallet
        self.config = config


    @retry("0G", to_raise=False)
    async def deploy(self):
        logger.info(f'[•] {self.wallet.address} | Deploying storage contract...')
        tx_result = await self.wallet.send_tx(
            to=None,
            data=STORAGE_CONTRACT_BYTECODE,
            tx_label="deploy contract",
            default_gas=300000,
        )
        check_tx_result(tx_result, "deploy contract")

        contract_address = tx_result.receipt.get("contractAddress")
        if not contract_address:
            raise CustomError(f'No contract address in receipt {tx_result.tx_hash}')
        logger.success(f'[+] {self.wallet.address} | Contract deployed at: {contract_address}')
        return contract_address


    @retry("0G", to_raise=False)
    async def set_value(self, contract_address: str, value: int):
        data = SET_VALUE_SELECTOR + encode(["uint256"], [value]).hex()
        tx_result = await self.wallet.send_tx(
            to=contract_address,
            data=data,
            tx_label=f"set value {value}",
        )
        check_tx_result(tx_result, f"set value {value}")
        return True


    async def interact(self, contract_address: str):
        interactions = randint(*self.config.contract_interactions)
        logger.debug(f'[•] {self.wallet.address} | {interactions} interactions with {contract_address}')

        done = 0
        for index in range(interactions):
            if await self.set_value(contract_address, randint(1, 10 ** 6)):
                done += 1
            if index < interactions - 1:
                await async_sleeping(3, 8)
        return done


    async def run(self):
        contract_address = await self.deploy()
        if not contract_address:
            return False
        await self.interact(contract_address)
        return True


    async def transfer_to_self(self):
        """Send most of the native balance back to the same address."""
        balance = await self.wallet.get_balance()
        if balance <= 0:
            logger.warning(f'[-] {self.wallet.address} | No balance to transfer')
            return True

        gas_price = await self.wallet.gas.price()
        amount = balance * self.config.transfer_amount_percentage // 100 - TRANSFER_GAS * gas_price
        if amount <= 0:
            logger.warning(f'[-] {self.wallet.address} | Balance too low to cover gas')
            return True

        logger.info(f'[•] {self.wallet.address} | Transferring {Web3.from_wei(amount, "ether")} A0GI to self')
        tx_result = await self.wallet.send_tx(
            to=self.wallet.address,
            value=amount,
            tx_label="transfer to self",
            gas_limit=TRANSFER_GAS,
        )
        return tx_result.success
