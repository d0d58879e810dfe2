"""Console logging for kingdom sessions.

Every line carries a tag so the source of a message can be read without
colour: engine steps ``[•]``, text-generation calls ``[AI]``, failed or
dropped collaborator work ``[!]``, completions ``[✓]`` and notes ``[i]``.
Set ``FABLEREALM_NO_COLOR`` to print the tags without ANSI codes.

``Config.LOG_LEVEL`` (``DEBUG``, ``INFO``, ``WARNING`` or ``ERROR``) sets the
quietest level still printed. Errors log at ``ERROR``; every other helper
logs at ``INFO``.
"""

import os
from enum import Enum

from .config import Config


class Color(Enum):
    BLUE = "\033[94m"
    YELLOW = "\033[93m"
    RED = "\033[91m"
    GREEN = "\033[92m"
    CYAN = "\033[96m"

    BOLD = "\033[1m"
    RESET = "\033[0m"


LOG_TAG_DETERMINISTIC = "[•]"
LOG_TAG_LLM = "[AI]"
LOG_TAG_ERROR = "[!]"
LOG_TAG_SUCCESS = "[✓]"
LOG_TAG_INFO = "[i]"

LEVELS = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40}


def colors_enabled() -> bool:
    return not os.getenv("FABLEREALM_NO_COLOR")


def colored(text: str, color: Color, bold: bool = False) -> str:
    """Wrap ``text`` in ANSI codes unless colours are disabled."""
    if not colors_enabled():
        return text
    prefix = (Color.BOLD.value if bold else "") + color.value
    return f"{prefix}{text}{Color.RESET.value}"


def level_enabled(level: str) -> bool:
    # Unknown names fall back to INFO
    threshold = LEVELS.get(str(Config.LOG_LEVEL).upper(), LEVELS["INFO"])
    return LEVELS[level] >= threshold


def _emit(tag: str, color: Color, message: str, level: str = "INFO") -> None:
    if level_enabled(level):
        print(colored(f"{tag} {message}", color))


def log_deterministic(message: str) -> None:
    _emit(LOG_TAG_DETERMINISTIC, Color.BLUE, message)


def log_llm(message: str) -> None:
    _emit(LOG_TAG_LLM, Color.YELLOW, message)


def log_error(message: str) -> None:
    _emit(LOG_TAG_ERROR, Color.RED, message, level="ERROR")


def log_success(message: str) -> None:
    _emit(LOG_TAG_SUCCESS, Color.GREEN, message)


def log_info(message: str) -> None:
    _emit(LOG_TAG_INFO, Color.CYAN, message)
