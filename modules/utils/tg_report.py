from aiohttp import ClientSession
from loguru import logger
from html import escape

from settings import TG_BOT_TOKEN, TG_USER_ID


TG_MESSAGE_LIMIT = 1900


def split_message(text: str, limit: int = TG_MESSAGE_LIMIT) -> list[str]:
    """Split on line boundaries where possible, hard-cut lines longer than `limit`."""
    chunks = [""]
    for line in text.splitlines(keepends=True):
        if chunks[-1] and len(chunks[-1]) + len(line) > limit:
            chunks.append("")
        chunks[-1] += line
    return [chunk[i:i + limit] for chunk in chunks for i in range(0, len(chunk), limit)]


class TgReport:
    """Per-wallet step results, sent to telegram when a bot token is set."""

    status_smiles = {True: "✅ ", False: "❌ ", None: ""}

    def __init__(self, title: str = ""):
        self.lines = [f"👛 <b>{escape(title)}</b>"] if title else []
        self.succeeded = 0
        self.total = 0

    @property
    def success_rate(self) -> tuple[int, int]:
        return self.succeeded, self.total

    def add(self, text: str, success: bool | None = None):
        self.lines.append(f"{self.status_smiles[success]}{escape(text)}")
        if success is not None:
            self.total += 1
            self.succeeded += bool(success)

    def render(self) -> str:
        text = "\n".join(self.lines)
        if self.total:
            text += f"\n\nSuccess rate {self.succeeded}/{self.total}"
        return text

    async def send(self, text: str | None = None):
        if not TG_BOT_TOKEN or not TG_USER_ID:
            return

        chunks = split_message(text or self.render())
        async with ClientSession() as session:
            for tg_id in TG_USER_ID:
                for chunk in chunks:
                    try:
                        r = await session.post(
                            url=f"https://api.telegram.org/bot{TG_BOT_TOKEN}/sendMessage",
                            json={
                                "parse_mode": "html",
                                "disable_web_page_preview": True,
                                "chat_id": tg_id,
                                "text": chunk,
                            },
                        )
                        response = await r.json()
                        if response.get("ok") is not True:
                            raise Exception(str(response))
                    except Exception as err:
                        logger.error(f'[-] TG | Send Telegram message error to {tg_id}: {err}')
