from dataclasses import dataclass
from inquirer import prompt, List
from inquirer.themes import load_theme_from_dict

from settings import CYCLE_HOURS


@dataclass
class Mode:
    type: str
    text: str


MODES = [
    Mode(type="cycle", text=f"Run all wallets every {CYCLE_HOURS}h"),
    Mode(type="once", text="Run all wallets once"),
    Mode(type="exit", text="← Exit"),
]

THEME = load_theme_from_dict({"List": {"selection_cursor": "👉🏻"}})


def choose_mode(modes: list[Mode] = MODES) -> Mode:
    answer = prompt(
        questions=[
            List(
                name="mode",
                message="🚀 Choose mode",
                choices=[(mode.text, mode.type) for mode in modes],
                carousel=True,
            )
        ],
        raise_keyboard_interrupt=True,
        theme=THEME,
    )
    return next(mode for mode in modes if mode.type == answer["mode"])
