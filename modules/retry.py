from typing import Callable, Awaitable
from random import random
from enum import Enum
from loguru import logger
import asyncio

from settings import RETRY


class CustomError(Exception): pass

class ConfigError(Exception): pass

class TransactionError(Exception):
    def __init__(self, message: str, error_code: str, encoded_tx: str = ""):
        error_string = f"{message}: {error_code}" + (f" | encoded tx: {encoded_tx}" if encoded_tx else "")
        super().__init__(error_string)
        self.error_code = error_code
        self.encoded_tx = encoded_tx

class TxBuildError(TransactionError): pass

class TxNotFoundError(TransactionError): pass

class AlreadyConfirmedError(TransactionError): pass


class ErrorKind(Enum):
    MEMPOOL = "mempool"
    TRANSIENT = "transient"
    FATAL = "fatal"


# substrings are matched case-insensitive, first table hit wins
ERROR_PATTERNS: dict = {
    ErrorKind.MEMPOOL: [
        "mempool is full",
        "already known",
        "nonce too low",
        "replacement transaction underpriced",
        "transaction underpriced",
    ],
    ErrorKind.TRANSIENT: [
        "timeout",
        "timed out",
        "connection reset",
        "connection refused",
        "cannot connect",
        "rate limit",
        "too many requests",
        "429",
        "502",
        "503",
        "504",
    ],
}


def classify_error(message: str | Exception, patterns: dict | None = None) -> ErrorKind:
    text = str(message).lower()
    for kind, kind_patterns in (patterns or ERROR_PATTERNS).items():
        if any(pattern.lower() in text for pattern in kind_patterns):
            return kind
    return ErrorKind.FATAL


class BackoffPolicy:
    """
    Exponential backoff with jitter.

    delay = max(base, min(cap, base * 2 ** attempt) * jitter), jitter in [0.5, 1.5).
    Mempool-class errors stretch the delay by `mempool_multiplier`.
    All values are seconds.
    """

    def __init__(
            self,
            base_wait_time: float,
            max_wait_time: float = 300,
            mempool_multiplier: float = 3,
            jitter: Callable[[], float] | None = None,
            sleeper: Callable[[float], Awaitable] | None = None,
    ):
        if base_wait_time <= 0:
            raise ValueError("base_wait_time must be positive")
        self.base_wait_time = base_wait_time
        self.max_wait_time = max_wait_time
        self.mempool_multiplier = mempool_multiplier
        self.jitter = jitter or (lambda: 0.5 + random())
        self.sleeper = sleeper or asyncio.sleep

    @classmethod
    def from_config(cls, config, **kwargs):
        return cls(
            base_wait_time=config.base_wait_time,
            max_wait_time=config.max_wait_time,
            mempool_multiplier=config.mempool_multiplier,
            **kwargs,
        )

    def delay(self, attempt: int, error_kind: ErrorKind | None = None) -> float:
        wait_time = min(self.max_wait_time, self.base_wait_time * 2 ** attempt) * self.jitter()
        wait_time = max(self.base_wait_time, wait_time)
        if error_kind is ErrorKind.MEMPOOL:
            wait_time *= self.mempool_multiplier
        return wait_time

    async def wait(self, attempt: int, error_kind: ErrorKind | None = None) -> float:
        wait_time = self.delay(attempt, error_kind)
        await self.sleeper(wait_time)
        return wait_time


async def pause(seconds: float):
    await asyncio.sleep(seconds)


def retry(
        source: str,
        module_str: str = None,
        exceptions = Exception,
        retries: int = RETRY,
        not_except = (CustomError,),
        to_raise: bool = True,
        sleep_on_error: int | None = None,
):
    """
    Operation-level retry. `sleep_on_error=None` waits 2 ** attempt seconds between attempts.
    """
    def decorator(f):
        custom_module_str = f.__name__.replace('_', ' ').title() if not module_str else module_str
        async def newfn(*args, **kwargs):
            attempt = 0
            while attempt < retries:
                try:
                    return await f(*args, **kwargs)

                except not_except as e:
                    if to_raise: raise e.__class__(f'{custom_module_str}: {e}')
                    else: return False

                except exceptions as e:
                    if args and hasattr(args[0], "address"):
                        error_owner = args[0].address + " | "
                    elif args and hasattr(args[0], "wallet") and hasattr(args[0].wallet, "address"):
                        error_owner = args[0].wallet.address + " | "
                    else:
                        error_owner = ""

                    attempt += 1
                    logger.opt(colors=True).error(
                        f'[-] {error_owner}<white>{source}</white> | {custom_module_str} | {e} [{attempt}/{retries}]'
                    )
                    if attempt == retries:
                        if to_raise: raise ValueError(f'{custom_module_str}: {e}')
                        else: return False

                    await pause(2 ** attempt if sleep_on_error is None else sleep_on_error)
        newfn.__name__ = f.__name__
        return newfn
    return decorator
