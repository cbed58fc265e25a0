from typing import Callable, Awaitable
from loguru import logger
from web3 import Web3

from modules.utils import make_border, TgReport
from modules.token_swapper import TokenSwapper
from modules.deployer import ContractDeployer
from modules.storage import StorageUploader
from modules.minter import MintConfigurator
from modules.faucet import FaucetClaimer
from modules.config import BotConfig
from modules.browser import Browser
from modules.wallet import Wallet


class ZeroG:
    def __init__(
            self,
            wallet: Wallet,
            browser: Browser,
            config: BotConfig,
            captcha_key: str = "",
            report: TgReport | None = None,
    ):
        self.wallet = wallet
        self.browser = browser
        self.config = config

        self.faucet = FaucetClaimer(browser=browser, captcha_key=captcha_key)
        self.deployer = ContractDeployer(wallet=wallet, config=config)
        self.storage = StorageUploader(wallet=wallet, browser=browser, config=config.storage)
        self.swapper = TokenSwapper(wallet=wallet, config=config.swap)
        self.minter = MintConfigurator(wallet=wallet, config=config.mint)

        self.report = report or TgReport(title=wallet.address)
        self.results: dict[str, str] = {}


    def steps(self) -> list[tuple[str, Callable[[], Awaitable]]]:
        steps = [
            ("Claiming faucet", self.config.enable_faucet, self.claim_faucet),
            ("Deploying contract", self.config.enable_contract_deploy, self.deployer.run),
            ("Transferring A0GI", self.config.enable_transfer, self.deployer.transfer_to_self),
            ("Uploading random files", self.config.enable_storage, self.storage.upload_random_files),
            ("Token operations", self.config.enable_token_operations, self.swapper.run),
            ("Minting", self.config.enable_mint, self.minter.run),
        ]
        return [(name, step_func) for name, enabled, step_func in steps if enabled]


    async def claim_faucet(self):
        return await self.faucet.claim(self.wallet.address)


    async def run(self):
        all_done = True
        for step_name, step_func in self.steps():
            step_done = await self.run_step(step_name, step_func)
            self.results[step_name] = "done" if step_done else "failed"
            self.report.add(step_name, step_done)
            all_done = all_done and step_done

        if self.wallet.pending:
            self.log_message(f"Replacing {len(self.wallet.pending)} stuck transactions")
            replaced = await self.wallet.replace_pending()
            if replaced:
                self.results["Replaced stuck txs"] = f"{sum(r.success for r in replaced)}/{len(replaced)}"

        await self.log_summary()
        await self.report.send()
        return all_done


    async def run_step(self, step_name: str, step_func: Callable[[], Awaitable]) -> bool:
        max_retries = max(1, self.config.max_retries)
        for attempt in range(max_retries):
            self.log_message(f"{step_name}... (Attempt {attempt + 1}/{max_retries})")
            try:
                if await step_func():
                    return True
            except Exception as err:
                self.log_message(f"{step_name} error: {err}", "-", "ERROR", colors=False)

            if attempt + 1 < max_retries:
                wait_time = self.wallet.backoff.delay(attempt)
                self.log_message(f"Waiting {round(wait_time)} seconds before retry...", "-", "WARNING")
                await self.wallet.backoff.sleeper(wait_time)

        self.log_message(f"{step_name} failed after {max_retries} attempts", "-", "ERROR")
        return False


    async def log_summary(self):
        table = dict(self.results)
        try:
            table["Balance"] = f'{round(Web3.from_wei(await self.wallet.get_balance(), "ether"), 5)} A0GI'
        except Exception as err:
            logger.debug(f'[•] {self.wallet.address} | Could not fetch balance: {err}')
        self.log_message("Wallet stats:\n" + make_border(table_elements=table, values_color="white"))


    def log_message(
            self,
            text: str,
            smile: str = "•",
            level: str = "DEBUG",
            colors: bool = True
    ):
        label = f"<white>{self.wallet.address}</white>" if colors else self.wallet.address
        logger.opt(colors=colors).log(level.upper(), f'[{smile}] {label} | {text}')
