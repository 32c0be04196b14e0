"""Editor/terminal insertion and user notifications for console use."""
import asyncio
import logging
import sys
from typing import Optional, TextIO

import pyperclip

logger = logging.getLogger(__name__)


class StreamEditor:
    """Editor target that receives the inserted text on a stream."""

    def __init__(self, stream: TextIO):
        self.stream = stream

    def insert(self, text: str) -> None:
        self.stream.write(text + "\n")
        self.stream.flush()


class StreamTerminal:
    """Terminal target that receives text as if it was typed."""

    def __init__(self, stream: TextIO):
        self.stream = stream

    def send_text(self, text: str, add_newline: bool = True) -> None:
        self.stream.write(text + ("\n" if add_newline else ""))
        self.stream.flush()


class ConsoleHost:
    """
    Host environment backed by standard streams.

    Args:
        remote_name: Remote connection the images are uploaded for (None = not connected)
        editor_stream: Stream standing in for the active editor (None = no editor)
        terminal_stream: Stream standing in for the active terminal (None = no terminal)
    """

    def __init__(self, remote_name: Optional[str] = None,
                 editor_stream: Optional[TextIO] = None,
                 terminal_stream: Optional[TextIO] = None):
        self.remote_name = remote_name
        self._editor = StreamEditor(editor_stream) if editor_stream is not None else None
        self._terminal = StreamTerminal(terminal_stream) if terminal_stream is not None else None

    def active_editor(self) -> Optional[StreamEditor]:
        return self._editor

    def active_terminal(self) -> Optional[StreamTerminal]:
        return self._terminal

    async def terminal_paste(self) -> None:
        """Paste the clipboard text into the terminal like a normal paste would."""
        terminal = self.active_terminal()
        if terminal is None:
            logger.debug("No active terminal for paste")
            return
        text = await asyncio.to_thread(pyperclip.paste)
        if text:
            terminal.send_text(text, add_newline=False)


class ConsoleNotifier:
    """Shows messages to the user on stderr."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream or sys.stderr

    def show_information(self, message: str) -> None:
        print(message, file=self.stream)

    def show_warning(self, message: str) -> None:
        print(f"Warning: {message}", file=self.stream)

    def show_error(self, message: str) -> None:
        print(f"Error: {message}", file=self.stream)
