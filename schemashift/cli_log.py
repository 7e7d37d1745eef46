"""Logger used by the command line interface."""

from __future__ import annotations

import sys
from datetime import datetime
from typing import NoReturn, Optional, TextIO

from schemashift.logger import Logger


class CliLog(Logger):
    """Writes messages to a stream, standard error by default.

    In verbose mode every message is prefixed with the local date and time.
    """

    def __init__(self, verbose: bool = False, stream: Optional[TextIO] = None) -> None:
        self._verbose = verbose
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        """The stream messages are written to."""
        return self._stream if self._stream is not None else sys.stderr

    def log(self, message: str) -> None:
        """Write one message, ending it with a newline if it has none."""
        text = str(message)
        if not text.endswith("\n"):
            text += "\n"
        if self._verbose:
            text = datetime.now().strftime("%Y/%m/%d %H:%M:%S ") + text
        stream = self.stream
        stream.write(text)
        stream.flush()

    def verbose(self) -> bool:
        return self._verbose

    def fatal(self, message: str) -> NoReturn:
        """Write ``message`` and exit with status 1."""
        self.log(message)
        raise SystemExit(1)