from enum import Enum
from loguru import logger

from modules.browser import Browser
from modules.config import CAPTCHA_URL, CAPTCHA_SITE_URL, CAPTCHA_SITE_KEY, FAUCET_URL, CHAINS_DATA


# where scrappey may put the hcaptcha token, checked in order
CAPTCHA_TOKEN_PATHS = (
    ("solution", "javascriptReturn", 0),
    ("solution", "hcaptchaToken"),
    ("solution", "token"),
    ("solution", "response"),
    ("token",),
)


class FaucetOutcome(Enum):
    COOLDOWN = "cooldown"
    SUCCESS = "success"
    INVALID_CAPTCHA = "invalid captcha"
    FAILED = "failed"


def extract_captcha_token(data: dict) -> str | None:
    for token_path in CAPTCHA_TOKEN_PATHS:
        value = data
        for key in token_path:
            try:
                value = value[key]
            except (KeyError, IndexError, TypeError):
                value = None
                break
        if isinstance(value, str) and value:
            return value
    return None


def classify_faucet_message(message: str | None) -> FaucetOutcome:
    if not message:
        return FaucetOutcome.FAILED
    if "hour" in message:
        return FaucetOutcome.COOLDOWN
    if "hash:" in message or message.startswith("0x"):
        return FaucetOutcome.SUCCESS
    if "captcha" in message.lower():
        return FaucetOutcome.INVALID_CAPTCHA
    return FaucetOutcome.FAILED


class FaucetClaimer:

    def __init__(self, browser: Browser, captcha_key: str):
        self.browser = browser
        self.captcha_key = captcha_key

    async def solve_captcha(self) -> str | None:
        logger.debug(f'[•] {self.browser.label} | Solving hCaptcha...')

        json_data = {
            "cmd": "request.get",
            "url": CAPTCHA_SITE_URL,
            "dontLoadMainSite": True,
            "filter": ["javascriptReturn"],
            "browserActions": [{
                "type": "solve_captcha",
                "captcha": "hcaptcha",
                "captchaData": {"sitekey": CAPTCHA_SITE_KEY},
            }],
        }
        # scrappey routes through the proxy from the body, not the transport
        proxy = self.browser.proxies.random_proxy()
        if proxy:
            json_data["proxy"] = proxy

        result = await self.browser.execute(
            "POST",
            CAPTCHA_URL,
            params={"key": self.captcha_key},
            json=json_data,
            timeout=120,
        )
        if not result.transport_completed:
            logger.error(f'[-] {self.browser.label} | Failed to solve captcha after all retries')
            return None

        if result.response.status_code == 200:
            try:
                captcha_token = extract_captcha_token(result.response.json())
            except ValueError:
                captcha_token = None
            if captcha_token:
                logger.success(f'[+] {self.browser.label} | Successfully got captcha solution')
                return captcha_token

        logger.error(f'[-] {self.browser.label} | Failed to get captcha solution: {result.response.text[:200]}')
        return None

    async def claim(self, address: str) -> bool:
        captcha_token = await self.solve_captcha()
        if not captcha_token:
            return False

        logger.debug(f'[•] {address} | Claiming faucet...')
        result = await self.browser.execute(
            "POST",
            FAUCET_URL,
            json={"address": address, "hcaptchaToken": captcha_token},
            headers={"Origin": "https://faucet.0g.ai", "Referer": "https://faucet.0g.ai/"},
        )
        if not result.transport_completed:
            return False

        try:
            message = result.response.json().get("message")
        except (ValueError, AttributeError):
            message = result.response.text
        logger.debug(f'[•] {address} | Faucet response [{result.response.status_code}]: {message}')

        outcome = classify_faucet_message(message)
        if outcome is FaucetOutcome.COOLDOWN:
            logger.warning(f'[•] {address} | {message}')
            return True

        if outcome is FaucetOutcome.SUCCESS:
            tx_hash = message.split("hash:")[1].strip() if "hash:" in message else message
            logger.success(f'[+] {address} | Faucet claimed: {CHAINS_DATA["0g"]["explorer"]}{tx_hash}')
            return True

        logger.error(f'[-] {address} | Faucet failed ({outcome.value}): {message or "Unknown error"}')
        return False
