from random import shuffle
from loguru import logger
from os import path
import asyncio
import sys
import os

from modules import *
from modules.utils import async_sleeping
from modules.retry import ConfigError
from settings import (
    SHUFFLE_WALLETS,
    RPCS,
    ROTATE_RPC,
    CAPTCHA_API_KEY,
    PRIVATEKEYS_PATH,
    PROXIES_PATH,
    CONFIG_PATH,
    SLEEP_BETWEEN_WALLETS,
    CYCLE_HOURS,
)


def load_privatekeys(privatekeys_path: str) -> list[str]:
    if not path.isfile(privatekeys_path):
        raise ConfigError(f'{privatekeys_path} not found')

    with open(privatekeys_path) as f:
        privatekeys = [line.strip() for line in f.read().splitlines() if line.strip()]
    if not privatekeys:
        raise ConfigError(f'No private keys in {privatekeys_path}')

    logger.success(f'[+] Soft | Found {len(privatekeys)} private keys')
    return privatekeys


async def run_wallet(privatekey: str, wallet_num: int, config: BotConfig, proxies: ProxyPool):
    backoff = BackoffPolicy.from_config(config.backoff)
    browser = Browser(proxies=proxies, config=config.http, backoff=backoff, label=f"Wallet {wallet_num}")
    address = f"Wallet {wallet_num}"
    try:
        rpc = RPCPool(rpcs=RPCS, rotate_enabled=ROTATE_RPC, proxy=browser.proxy)
        wallet = Wallet(
            privatekey=privatekey,
            rpc=rpc,
            config=config,
            backoff=backoff,
        )
        address = browser.label = wallet.address

        if not await ZeroG(
                wallet=wallet,
                browser=browser,
                config=config,
                captcha_key=CAPTCHA_API_KEY,
        ).run():
            logger.error(f'[-] {address} | Failed to process wallet completely')

    except Exception as err:
        logger.error(f'[-] {address} | Global error: {err}')
        report = TgReport(title=address)
        report.add(f'Global error: {err}', False)
        await report.send()

    finally:
        await browser.close()


async def run_cycle(config: BotConfig, privatekeys: list[str], proxies: ProxyPool):
    wallets = list(enumerate(privatekeys, start=1))
    if SHUFFLE_WALLETS:
        shuffle(wallets)

    for index, (wallet_num, privatekey) in enumerate(wallets):
        logger.opt(colors=True).info(f'[•] <white>Wallet {wallet_num}</white> | Processing {index + 1}/{len(wallets)}')
        await run_wallet(privatekey=privatekey, wallet_num=wallet_num, config=config, proxies=proxies)

        if index < len(wallets) - 1:
            await async_sleeping(SLEEP_BETWEEN_WALLETS)

    logger.success(f'[+] Soft | All wallets done')


async def runner(mode_type: str):
    config = load_config(CONFIG_PATH)
    proxies = ProxyPool.from_file(PROXIES_PATH)

    while True:
        privatekeys = load_privatekeys(PRIVATEKEYS_PATH)
        await run_cycle(config=config, privatekeys=privatekeys, proxies=proxies)

        if mode_type == "once":
            return

        logger.info(f'[•] Soft | Next cycle in {CYCLE_HOURS} hours')
        await async_sleeping(int(CYCLE_HOURS * 3600))


if __name__ == '__main__':
    if os.name == "nt":
        asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

    try:
        mode = choose_mode()

        if mode.type != "exit":
            asyncio.run(runner(mode_type=mode.type))

    except ConfigError as e:
        logger.error(f'[-] Config | {e}')
        sys.exit(1)

    except KeyboardInterrupt:
        pass

    except Exception as e:
        logger.critical(f'[-] Soft | Fatal error: {e}')
        sys.exit(1)

    finally:
        logger.info('[•] Soft | Closed')
