import asyncio
import sys

import pytest

from kconnect.api import process
from kconnect.api.exceptions import ProcessFailed, TransportFailed


@pytest.mark.asyncio
async def test_run_returns_stdout():
    output = await process.run(sys.executable, "-c", "print('hello')")
    assert output.strip() == "hello"


@pytest.mark.asyncio
async def test_run_passes_environment():
    output = await process.run(
        sys.executable, "-c", "import os; print(os.environ['KCONNECT_TEST'])",
        env = { "KCONNECT_TEST": "value" }
    )
    assert output.strip() == "value"


@pytest.mark.asyncio
async def test_non_zero_exit_fails():
    with pytest.raises(ProcessFailed) as excinfo:
        await process.run(
            sys.executable, "-c", "import sys; sys.stderr.write('boom'); sys.exit(3)"
        )
    assert excinfo.value.returncode == 3
    assert excinfo.value.stderr == "boom"
    assert "boom" in str(excinfo.value)


@pytest.mark.asyncio
async def test_missing_executable_is_transport_failure():
    with pytest.raises(TransportFailed):
        await process.run("kconnect-executable-that-does-not-exist", "login")


@pytest.mark.asyncio
async def test_cancellation_terminates_process(monkeypatch):
    procs = []
    create_subprocess_exec = asyncio.create_subprocess_exec
    async def recording_create_subprocess_exec(*args, **kwargs):
        proc = await create_subprocess_exec(*args, **kwargs)
        procs.append(proc)
        return proc
    monkeypatch.setattr(process.asyncio, "create_subprocess_exec", recording_create_subprocess_exec)
    task = asyncio.create_task(process.run(sys.executable, "-c", "import time; time.sleep(60)"))
    # Wait for the process to start
    while not procs:
        await asyncio.sleep(0.05)
    await asyncio.sleep(0.1)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert procs[0].returncode is not None
