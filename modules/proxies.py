from random import choice
from loguru import logger
from os import path


INVALID_PROXIES = ['https://log:pass@ip:port', 'http://log:pass@ip:port', 'log:pass@ip:port',
                   'http://login:password@ip:port', '', None]


def parse_proxy(proxy: str | None) -> str | None:
    if proxy is not None:
        proxy = proxy.strip()
    if proxy in INVALID_PROXIES:
        return None
    return "http://" + proxy.removeprefix("https://").removeprefix("http://")


class ProxyPool:
    """Uniform random draw with replacement. No health tracking: a failed proxy can be drawn again."""

    def __init__(self, proxies: list[str] | None = None):
        self.proxies = [
            parsed for parsed in map(parse_proxy, proxies or [])
            if parsed is not None
        ]

    @classmethod
    def from_file(cls, proxies_path: str):
        if not path.isfile(proxies_path):
            logger.warning(f'[•] Soft | {proxies_path} not found, will use direct connection')
            return cls([])

        with open(proxies_path) as f:
            pool = cls(f.read().splitlines())

        if pool.proxies:
            logger.success(f'[+] Soft | Loaded {len(pool)} proxies')
        else:
            logger.warning(f'[•] Soft | No proxies loaded, will use direct connection')
        return pool

    def __len__(self):
        return len(self.proxies)

    def random_proxy(self) -> str | None:
        if not self.proxies:
            return None
        return choice(self.proxies)
