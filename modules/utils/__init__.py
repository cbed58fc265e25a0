from .utils import (
    round_cut,
    make_border,
    async_sleeping,
    random_domain_name,
)
from .modes import choose_mode
from .tg_report import TgReport
