"""Per-worker progress bars and status lines (Saved / Error / Warning) on stderr."""

import sys
from dataclasses import dataclass

from tqdm import tqdm

ANSI_COLOURS = {"red": 31, "green": 32, "yellow": 33, "cyan": 36}

LABEL_WIDTH = 13
PREFIX_WIDTH = 11

SPINNER_FORMAT = "{desc}"
BAR_FORMAT = "{desc} {n_fmt}/{total_fmt} {rate_fmt} |{bar}|"


@dataclass(frozen=True)
class StatusStyle:
    """Colours for each kind of status label. All bold; disabled means plain text."""

    enabled: bool = True
    working: str = "cyan"
    ok: str = "green"
    warn: str = "yellow"
    error: str = "red"

    @classmethod
    def for_stderr(cls, colour: bool = True) -> "StatusStyle":
        isatty = getattr(sys.stderr, "isatty", None)
        return cls(enabled=colour and bool(isatty and isatty()))

    def paint(self, text: str, kind: str) -> str:
        if not self.enabled:
            return text
        code = ANSI_COLOURS[getattr(self, kind)]
        return f"\x1b[1;{code}m{text}\x1b[0m"


class Reporter:
    """Status output for one worker: a tqdm bar showing what it does, plus printed lines."""

    def __init__(self, style: StatusStyle, position: int = 0, progress: bool = True) -> None:
        self.style = style
        self._prefix = ""
        self._message = ""
        self._bar = tqdm(
            total=None,
            position=position,
            leave=False,
            file=sys.stderr,
            disable=not progress,
            bar_format=SPINNER_FORMAT,
            unit="B",
            unit_scale=True,
            unit_divisor=1024,
            dynamic_ncols=True,
        )

    def _refresh(self) -> None:
        prefix = self.style.paint(self._prefix.rjust(PREFIX_WIDTH), "working")
        self._bar.set_description_str(f"{prefix} {self._message}")

    def set_prefix(self, prefix: str) -> None:
        self._prefix = prefix
        self._refresh()

    def set_message(self, message: str) -> None:
        self._message = message
        self._refresh()

    def start_bytes(self, total: int) -> None:
        """Switch from the spinner line to a byte progress bar of total bytes."""
        self._bar.bar_format = BAR_FORMAT
        self._bar.reset(total=total)

    def advance(self, n: int) -> None:
        self._bar.update(n)

    def reset(self) -> None:
        """Back to the spinner line (after a download finished or failed)."""
        self._bar.bar_format = SPINNER_FORMAT
        self._bar.reset(total=None)

    def println(self, line: str) -> None:
        tqdm.write(line, file=sys.stderr)

    def saved(self, url: object) -> None:
        self.println(f"{self.style.paint('Saved'.rjust(LABEL_WIDTH), 'ok')} {url}")

    def error(self, context: str, err: BaseException) -> None:
        self.println(f"{self.style.paint('Error', 'error')} {context}: {err}")

    def warning(self, message: str) -> None:
        self.println(f"{self.style.paint('Warning', 'warn')}: {message}")

    def close(self) -> None:
        self._bar.close()
