"""An action that runs an operating-system command."""

from __future__ import annotations

import asyncio
import logging
import sys
from collections.abc import Sequence

from .action import Action
from .content import Content
from .env import EnvVar
from .in_channel import InChannels, RecvError
from .out_channel import OutChannels
from .output import Output

logger = logging.getLogger(__name__)

_WINDOWS = sys.platform == "win32"


def _split_lines(data: bytes, windows: bool) -> list[str]:
    """Split command output into lines; output that is not UTF-8 gives no lines."""
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError:
        return []
    lines = text.split("\r\n" if windows else "\n")
    if lines[-1] == "":
        lines.pop()
    if windows:
        lines.reverse()
    return lines


def _input_text(result: Content | RecvError) -> str | None:
    if isinstance(result, Content):
        return result.get(str)
    return None


class CommandAction(Action):
    """Run *command* with *args*, followed by every string received on the inputs.

    On success the output and the broadcast packet hold ``(stdout_lines,
    stderr_lines)``; a non-zero exit gives an error output with the exit code
    and the same pair as content.
    """

    def __init__(self, command: str, args: Sequence[str]) -> None:
        self.command = command
        self.args = list(args)

    async def run(
        self, in_channels: InChannels, out_channels: OutChannels, env: EnvVar
    ) -> Output:
        if _WINDOWS:
            program = "powershell"
            args = ["-Command", self.command]
        else:
            program = self.command
            args = []

        inputs = await in_channels.map(_input_text)
        args.extend(self.args)
        args.extend(text for text in inputs if text is not None)

        logger.info("cmd: %r, args: %r", program, args)

        try:
            process = await asyncio.create_subprocess_exec(
                program,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            raw_stdout, raw_stderr = await process.communicate()
        except OSError as error:
            await out_channels.broadcast(Content(error.errno))
            return Output.error_with_exit_code(error.errno, Content(str(error)))

        returncode = process.returncode
        code = returncode if returncode is not None and returncode >= 0 else 0
        stdout = _split_lines(raw_stdout, _WINDOWS)
        stderr = _split_lines(raw_stderr, _WINDOWS)

        await out_channels.broadcast(Content((list(stdout), list(stderr))))
        if returncode == 0:
            return Output.new((stdout, stderr))
        return Output.error_with_exit_code(code, Content((stdout, stderr)))