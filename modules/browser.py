from curl_cffi.requests import AsyncSession
from dataclasses import dataclass
from typing import Any
from loguru import logger

from modules.retry import BackoffPolicy
from modules.proxies import ProxyPool
from modules.config import HttpConfig


@dataclass
class RequestResult:
    response: Any
    transport_completed: bool           # got an http response, says nothing about business success


class Browser:

    HEADERS = {
        "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/132.0.0.0 Safari/537.36",
        "Content-Type": "application/json",
    }

    def __init__(
            self,
            proxies: ProxyPool,
            config: HttpConfig,
            backoff: BackoffPolicy,
            label: str = "",
            session: Any = None,
    ):
        self.proxies = proxies
        self.config = config
        self.backoff = backoff
        self.label = label

        self.proxy = proxies.random_proxy()
        self.session = session or self.get_new_session()

    def get_new_session(self):
        return AsyncSession(impersonate="chrome131", headers=self.HEADERS)

    def change_proxy(self):
        self.proxy = self.proxies.random_proxy()

    async def close(self):
        await self.session.close()

    async def execute(self, method: str, url: str, **kwargs) -> RequestResult:
        """
        Send a request, retrying transport errors and retryable statuses
        (408, 429, 500, 502, 503, 504) with backoff and a fresh proxy.

        Any other status is returned right away with `transport_completed=True`:
        callers must check the body/status for the business result themselves.
        Never raises; exhausted retries give `RequestResult(None, False)`.
        """
        use_proxy = url not in self.config.no_proxy_urls
        timeout = self.config.timeouts.get(url, kwargs.pop("timeout", self.config.timeout))
        max_retries = self.config.max_retries

        for attempt in range(max_retries):
            request_kwargs = {**kwargs, "timeout": timeout}
            if use_proxy and self.proxy:
                request_kwargs["proxy"] = self.proxy

            try:
                response = await self.session.request(method=method.upper(), url=url, **request_kwargs)
                if response.status_code not in self.config.retry_codes:
                    return RequestResult(response=response, transport_completed=True)
                error_text = f'Got status {response.status_code}'

            except Exception as err:
                error_text = f'Request error: {str(err) or err.__class__.__name__}'

            if attempt + 1 >= max_retries:
                logger.error(f'[-] {self.label} | {error_text} from {url} [{attempt + 1}/{max_retries}]')
                break

            wait_time = self.backoff.delay(attempt)
            logger.warning(f'[-] {self.label} | {error_text} from {url}, retrying in {round(wait_time, 1)}s '
                           f'[{attempt + 1}/{max_retries}]')
            await self.backoff.sleeper(wait_time)

            if use_proxy:
                self.change_proxy()

        return RequestResult(response=None, transport_completed=False)
