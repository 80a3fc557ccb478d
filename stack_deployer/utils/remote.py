"""
Remote Command Execution Utilities

SSH/SFTP helpers used by the bootstrap stage. Built on `asyncssh`; the public
methods are synchronous and run their coroutine on a private event loop.
"""

import asyncio
import os
import shlex
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Coroutine, List, Optional, Sequence, TypeVar

import asyncssh
from loguru import logger

T = TypeVar("T")


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, str):
        return value
    return str(value)


@dataclass
class CommandResult:
    """Result of a remote command execution"""
    host: str
    command: str
    success: bool
    stdout: str
    stderr: str
    return_code: int


class RemoteExecutor:
    """
    Executes commands on one remote server via SSH (asyncssh).

    Commands of a sequence share a single connection and run one after
    another; `run_sequence` stops at the first non-zero exit.
    """

    def __init__(
        self,
        ssh_key_path: Optional[str] = None,
        ssh_user: str = "ubuntu",
        known_hosts: Optional[str] = None,
        connect_timeout: float = 30.0,
        command_timeout: float = 900.0,
    ):
        """
        Args:
            ssh_key_path: Path to SSH private key
            ssh_user: SSH username
            known_hosts: Path to known_hosts file (or None to disable host key checks)
            connect_timeout: SSH connect timeout seconds
            command_timeout: Per-command timeout seconds
        """
        self.ssh_key_path = ssh_key_path
        self.ssh_user = ssh_user
        self.known_hosts = known_hosts
        self.connect_timeout = connect_timeout
        self.command_timeout = command_timeout

    def _run_coro(self, coro: Coroutine[Any, Any, T]) -> T:
        """Run coroutine from sync code, also when a loop is already running."""
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(coro)

        with ThreadPoolExecutor(max_workers=1) as executor:
            fut = executor.submit(asyncio.run, coro)
            return fut.result()

    async def _connect(self, host: str) -> asyncssh.SSHClientConnection:
        client_keys: Optional[List[str]] = None
        if self.ssh_key_path:
            client_keys = [self.ssh_key_path]

        return await asyncssh.connect(
            host,
            username=self.ssh_user,
            client_keys=client_keys,
            known_hosts=self.known_hosts,
            connect_timeout=self.connect_timeout,
        )

    async def _run_on(self, conn: Any, host: str, command: str) -> CommandResult:
        res = await asyncio.wait_for(conn.run(command, check=False), timeout=self.command_timeout)
        exit_status = res.exit_status if res.exit_status is not None else -1
        return CommandResult(
            host=host,
            command=command,
            success=exit_status == 0,
            stdout=_as_text(res.stdout),
            stderr=_as_text(res.stderr),
            return_code=int(exit_status),
        )

    async def _run_sequence_async(self, host: str, commands: Sequence[str]) -> List[CommandResult]:
        results: List[CommandResult] = []
        async with await self._connect(host) as conn:
            for command in commands:
                logger.debug(f"{host} $ {command}")
                result = await self._run_on(conn, host, command)
                results.append(result)
                if not result.success:
                    break
        return results

    def run_sequence(self, host: str, commands: Sequence[str]) -> List[CommandResult]:
        """
        Run commands in order over one connection.

        The returned list ends at the first failed command; commands after it
        are not executed. Connection errors propagate.
        """
        return self._run_coro(self._run_sequence_async(host, commands))

    def execute_on_host(self, host: str, command: str) -> CommandResult:
        return self.run_sequence(host, [command])[0]

    def copy_file(self, host: str, local_path: str, remote_path: str) -> None:
        """Copy a file to the host over SFTP, creating the remote directory"""
        async def do_copy() -> None:
            async with await self._connect(host) as conn:
                remote_dir = os.path.dirname(remote_path)
                if remote_dir:
                    await conn.run(f"mkdir -p {shlex.quote(remote_dir)}", check=False)
                async with conn.start_sftp_client() as sftp:
                    await sftp.put(local_path, remote_path)

        self._run_coro(do_copy())

    def wait_ready(self, host: str, timeout: float = 300, interval: float = 5) -> None:
        """Wait until the SSH daemon on a host accepts connections."""
        async def poll() -> None:
            deadline = time.time() + timeout
            attempt = 0
            while True:
                try:
                    conn = await self._connect(host)
                    conn.close()
                    await conn.wait_closed()
                    return
                except (asyncssh.Error, OSError, asyncio.TimeoutError) as exc:
                    attempt += 1
                    if time.time() + interval >= deadline:
                        raise TimeoutError(f"SSH not ready for {host} after {timeout}s: {exc}") from exc
                    logger.debug(f"SSH on {host} not ready (attempt {attempt}), retry in {interval}s: {exc}")
                    await asyncio.sleep(interval)

        self._run_coro(poll())
