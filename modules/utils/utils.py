from random import randint, choice
from datetime import datetime
from decimal import Decimal
from loguru import logger
from tqdm import tqdm
import asyncio
import sys
sys.__stdout__ = sys.stdout # error with `import inquirer` without this string in some system


logger.remove()
logger.add(sys.stderr, format="<white>{time:HH:mm:ss}</white> | <level>{message}</level>")


NAME_SYLLABLES = [
    "al", "an", "ar", "be", "bo", "da", "el", "en", "fa", "ga", "ha", "il", "ja", "ka", "ki", "la", "le",
    "li", "lo", "ma", "mi", "mo", "na", "ni", "no", "ra", "ri", "ro", "sa", "se", "so", "ta", "ti", "to",
    "va", "vi", "ya", "za", "zo",
]


def _timing(timing: tuple) -> int:
    if type(timing[0]) in [list, tuple]: timing = timing[0]
    if len(timing) == 2: return randint(timing[0], timing[1])
    return int(timing[0])


async def async_sleeping(*timing):
    """Accepts seconds or a [min, max] range, shows a progress bar while waiting."""
    x = _timing(timing)
    desc = datetime.now().strftime('%H:%M:%S')
    if x <= 0: return
    for _ in tqdm(range(x), desc=desc, bar_format='{desc} | [•] Sleeping {n_fmt}/{total_fmt}'):
        await asyncio.sleep(1)


def make_border(
        table_elements: dict,
        keys_color: str | None = None,
        values_color: str | None = None,
        table_color: str | None = None,
):
    """Two-column loguru-colored table, one row per dict item."""
    def paint(value: str, color: str | None):
        return f"<{color}>{value}</{color}>" if color else value

    if not table_elements: return "No text"

    margin = " " * 25
    pad = 2
    rows = [(str(key), str(value)) for key, value in table_elements.items()]
    key_width = max(len(key) for key, _ in rows) + pad
    value_width = max(len(value) for _, value in rows) + pad
    separator = f'{margin}o{"━" * (pad + key_width)}o{"━" * (pad + value_width)}o\n'

    text = separator
    for key, value in rows:
        text += (
            f'{margin}║{" " * pad}{paint(key, keys_color)}{" " * (key_width - len(key))}'
            f'║{" " * pad}{paint(value, values_color)}{" " * (value_width - len(value))}║\n'
        )
        text += separator
    return paint(text, table_color)


def round_cut(value: float | str | Decimal, digits: int):
    return Decimal(str(int(float(value) * 10 ** digits) / 10 ** digits))


def random_domain_name(length: int) -> str:
    name = ""
    while len(name) < length:
        name += choice(NAME_SYLLABLES)
    if randint(0, 2) == 0 and length > 3:
        suffix = str(randint(1, 99))
        name = name[:length - len(suffix)] + suffix
    return name[:length]
