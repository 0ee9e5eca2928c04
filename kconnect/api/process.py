"""
Module for running external executables, such as the Azure CLI.

The caller only sees arguments in and exit status and output out. Cancelling the
calling task terminates the child process.
"""

import asyncio
import logging
import os
import subprocess

from .exceptions import TransportFailed, ProcessFailed


logger = logging.getLogger(__name__)


#: Seconds to wait for a terminated process before killing it
TERMINATE_GRACE_PERIOD = 5


async def _terminate(proc):
    if proc.returncode is not None:
        return
    proc.terminate()
    try:
        await asyncio.wait_for(proc.wait(), TERMINATE_GRACE_PERIOD)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()


async def run(*args, interactive = False, env = None):
    """
    Run the given command and return its stdout as a string.

    If ``interactive`` is true the process inherits stdin, stdout and stderr so the
    operator can respond to prompts and the empty string is returned. Otherwise
    stdout and stderr are captured and stdin is closed.

    Raises ``TransportFailed`` if the executable cannot be found and ``ProcessFailed``
    if it exits with a non-zero status.
    """
    if interactive:
        kwargs = dict(stdin = None, stdout = None, stderr = None)
    else:
        kwargs = dict(
            stdin = subprocess.DEVNULL,
            stdout = subprocess.PIPE,
            stderr = subprocess.PIPE
        )
    if env:
        kwargs.update(env = dict(os.environ, **env))
    try:
        proc = await asyncio.create_subprocess_exec(*args, **kwargs)
    except FileNotFoundError as exc:
        raise TransportFailed(f'executable "{args[0]}" not found') from exc
    except PermissionError as exc:
        raise TransportFailed(f'executable "{args[0]}" cannot be run: {exc}') from exc
    try:
        stdout, stderr = await proc.communicate()
    except asyncio.CancelledError:
        logger.debug('Terminating "%s" (pid %s) after cancellation', args[0], proc.pid)
        await _terminate(proc)
        raise
    stdout = stdout.decode(errors = 'replace') if stdout else ""
    stderr = stderr.decode(errors = 'replace').strip() if stderr else ""
    if proc.returncode != 0:
        raise ProcessFailed(
            f'"{args[0]}" exited with status {proc.returncode}' + (f': {stderr}' if stderr else ''),
            returncode = proc.returncode,
            stderr = stderr
        )
    return stdout
