"""
Node CLI bridge - runs ``safrochaind`` subcommands through Docker.

``exec`` targets the running node container. ``run`` starts a throwaway
container from the node image with the data directory mounted, which is how
the node is initialized and keys are managed before it is started.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional, Sequence

import docker
import requests

from safrobox.commands.constants import NODE_BINARY
from safrobox.commands.errors import CommandError, RetrievalError

logger = logging.getLogger(__name__)

STDIN_ENV = "SAFROBOX_STDIN"
# Pipes the secret held in $SAFROBOX_STDIN into "$0 $@" so it never appears
# in a command line.
STDIN_SCRIPT = f'printf "%s\\n" "${STDIN_ENV}" | "$0" "$@"'


def decode_output(data) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return str(data)


@dataclass
class CommandResult:
    """Outcome of one node binary invocation."""

    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def output(self) -> str:
        """Stdout, or stderr when the binary wrote nothing to stdout."""
        return self.stdout.strip() or self.stderr.strip()


def with_stdin(args: Sequence[str], stdin: str) -> tuple[list[str], dict[str, str]]:
    """Wrap a node command so ``stdin`` is fed to it from the environment."""
    command = ["sh", "-c", STDIN_SCRIPT, NODE_BINARY, *args]
    return command, {STDIN_ENV: stdin}


class NodeBridge:
    """Executes node binary commands inside Docker."""

    def __init__(self, manager, settings):
        self.manager = manager
        self.settings = settings

    def exec(self, args: Sequence[str], stdin: Optional[str] = None) -> CommandResult:
        """Run ``safrochaind args`` inside the running node container.

        Raises:
            NodeNotRunningError: If the node container is not running.
            RetrievalError: If the Docker daemon fails the exec call.
        """
        container = self.manager.require_running()
        environment = None
        if stdin is not None:
            command, environment = with_stdin(args, stdin)
        else:
            command = [NODE_BINARY, *args]
        logger.debug("exec %s: %s", container.name, " ".join([NODE_BINARY, *args]))
        return self._exec_run(container, command, environment=environment)

    def exec_raw(self, command: Sequence[str]) -> CommandResult:
        """Run an arbitrary command (not the node binary) in the node container."""
        container = self.manager.require_running()
        return self._exec_run(container, list(command))

    @staticmethod
    def _exec_run(container, command: list, **kwargs) -> CommandResult:
        try:
            exit_code, output = container.exec_run(command, demux=True, **kwargs)
        except (docker.errors.DockerException, requests.RequestException) as e:
            # a restarting container or a busy daemon rejects the exec
            raise RetrievalError(
                f"Docker exec in {container.name} failed: {str(e)}"
            ) from e
        stdout, stderr = output if output is not None else (None, None)
        return CommandResult(
            exit_code=exit_code if exit_code is not None else 0,
            stdout=decode_output(stdout),
            stderr=decode_output(stderr),
        )

    def run(
        self,
        args: Sequence[str],
        stdin: Optional[str] = None,
        network_mode: Optional[str] = None,
    ) -> CommandResult:
        """Run ``safrochaind args`` in a one-shot container sharing the data volume."""
        logger.debug("run: %s", " ".join([NODE_BINARY, *args]))
        if stdin is not None:
            command, environment = with_stdin(args, stdin)
            return self.manager.run_once(
                command[3:],
                entrypoint=command[:3],
                environment=environment,
                network_mode=network_mode,
            )
        return self.manager.run_once(
            list(args), entrypoint=[NODE_BINARY], network_mode=network_mode
        )

    @staticmethod
    def check(result: CommandResult, args: Sequence[str], what: str) -> str:
        """Return the output of a successful result, raise CommandError otherwise."""
        if not result.ok:
            raise CommandError(
                f"{what} failed (exit code {result.exit_code}): "
                f"{result.stderr.strip() or result.stdout.strip()}",
                args=list(args),
                exit_code=result.exit_code,
                output=result.output,
            )
        return result.output

    @staticmethod
    def parse_json(result: CommandResult, what: str) -> Any:
        """Decode the JSON output of a result.

        Raises:
            RetrievalError: If there is no output or it is not JSON.
        """
        text = result.output
        if not text:
            raise RetrievalError(f"Failed to get {what}: empty output")
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise RetrievalError(
                f"Failed to parse {what}: {e.msg}", output=text
            ) from e
