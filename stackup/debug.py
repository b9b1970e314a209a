"""Debug output that is printed only when enabled."""

from dataclasses import dataclass


@dataclass
class Debug:
    """Prints prefixed debug lines to stdout when enabled."""

    enabled: bool = False

    def logf(self, fmt: str, *args) -> None:
        if not self.enabled:
            return
        text = fmt % args if args else fmt
        if not text.endswith("\n"):
            text += "\n"
        print(" [debug] " + text, end="")

    def log(self, *args: str) -> None:
        if not args:
            self.logf("")
            return
        for message in args:
            self.logf("%s", message)


dbg = Debug()


def logf(fmt: str, *args) -> None:
    dbg.logf(fmt, *args)


def log(*args: str) -> None:
    dbg.log(*args)