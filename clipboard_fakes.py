"""Scripted stand-in for run_command used by the clipboard tests."""
from contextlib import ExitStack, contextmanager
from unittest.mock import patch

from remotepix.exceptions import ClipboardAccessError


class FakeCommands:
    """
    Answers run_command calls from a table keyed by argv tuple.

    Values are bytes (stdout), an exception instance (raised), or a callable
    taking the argv list and returning bytes. Unknown commands fail like a
    missing program.
    """

    def __init__(self, responses=None):
        self.responses = dict(responses or {})
        self.calls = []

    async def __call__(self, command, timeout, input_data=None, capture_output=True):
        command = list(command)
        self.calls.append({
            "command": command,
            "timeout": timeout,
            "input_data": input_data,
            "capture_output": capture_output,
        })
        response = self.responses.get(tuple(command))
        if response is None:
            for key, value in self.responses.items():
                if callable(key) and key(command):
                    response = value
                    break
        if response is None:
            raise ClipboardAccessError(f"Could not start {command[0]}", command=command)
        if isinstance(response, BaseException):
            raise response
        if callable(response):
            return response(command)
        return response

    def programs(self):
        return [call["command"][0] for call in self.calls]


@contextmanager
def patched_commands(fake, *modules):
    """Patch run_command in remotepix.clipboard.base and the given modules."""
    with ExitStack() as stack:
        stack.enter_context(patch("remotepix.clipboard.base.run_command", fake))
        for module in modules:
            stack.enter_context(patch(f"{module}.run_command", fake))
        yield fake


def failure(command, returncode=1, stderr=""):
    return ClipboardAccessError(
        f"{command[0]} exited with code {returncode}",
        command=command, returncode=returncode, stderr=stderr
    )
