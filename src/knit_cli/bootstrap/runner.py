"""External command execution for bootstrap steps.

Every kubectl/helm call made during a bootstrap goes through ProcessRunner,
which logs the command line (and any stdin payload) before running it and
captures stdout and stderr as a single stream.
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass

from ..errors import CommandError
from ..shared.logging import get_logger

logger = get_logger(__name__)

# Executables that accept --kubeconfig
KUBECONFIG_AWARE = ("kubectl", "helm")

REDACTED = "<redacted>"


@dataclass(frozen=True)
class CommandInvocation:
    """A single external command.

    redact keeps stdin and output out of the logs (key material).
    """

    executable: str
    args: tuple[str, ...] = ()
    stdin: str | None = None
    redact: bool = False

    @property
    def command_line(self) -> str:
        return " ".join((self.executable, *self.args))


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a CommandInvocation."""

    invocation: CommandInvocation
    output: str
    ok: bool
    returncode: int | None = None


class ProcessRunner:
    """Run external commands synchronously."""

    def __init__(self, kubeconfig: str | None = None):
        """Initialize runner.

        Args:
            kubeconfig: Path to kubeconfig file, passed to kubectl and helm.
        """
        self.kubeconfig = kubeconfig

    def _build(
        self,
        command: str,
        args: tuple[str, ...],
        stdin: str | None,
        redact: bool,
    ) -> CommandInvocation:
        if self.kubeconfig and command in KUBECONFIG_AWARE:
            args = ("--kubeconfig", self.kubeconfig, *args)
        return CommandInvocation(command, args, stdin, redact)

    def execute(self, invocation: CommandInvocation) -> CommandResult:
        """Run an invocation and classify the result.

        ok is False when the process exits non-zero or cannot be spawned.
        """
        if invocation.stdin is None:
            logger.info("Executing command", command=invocation.command_line)
        else:
            logger.info(
                "Executing command (stdin)",
                command=invocation.command_line,
                stdin=REDACTED if invocation.redact else invocation.stdin,
            )

        # Without a payload the child must not read the operator's terminal
        if invocation.stdin is None:
            feed = {"stdin": subprocess.DEVNULL}
        else:
            feed = {"input": invocation.stdin}

        try:
            result = subprocess.run(
                [invocation.executable, *invocation.args],
                **feed,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
            )
        except OSError as e:
            return CommandResult(invocation, str(e), ok=False)

        output = result.stdout or ""
        return CommandResult(invocation, output, result.returncode == 0, result.returncode)

    def run(self, command: str, *args: str, redact: bool = False) -> CommandResult:
        """Run a command without stdin."""
        return self.execute(self._build(command, args, None, redact))

    def run_with_input(
        self,
        input: str,
        command: str,
        *args: str,
        redact: bool = False,
    ) -> CommandResult:
        """Run a command, writing input to its stdin and closing it."""
        return self.execute(self._build(command, args, input, redact))

    def check(self, command: str, *args: str, redact: bool = False) -> str:
        """Run a command that must succeed.

        Returns:
            Combined output of the command.

        Raises:
            CommandError: If the command failed.
        """
        return _require_ok(self.run(command, *args, redact=redact))

    def check_with_input(self, input: str, command: str, *args: str, redact: bool = False) -> str:
        """Run a stdin-fed command that must succeed."""
        return _require_ok(self.run_with_input(input, command, *args, redact=redact))


def _require_ok(result: CommandResult) -> str:
    if not result.ok:
        raise CommandError(
            message=f"Command failed: {result.invocation.command_line}",
            command=result.invocation.command_line,
            output=result.output,
            returncode=result.returncode,
        )
    output = REDACTED if result.invocation.redact else result.output
    logger.info("Command output", command=result.invocation.command_line, output=output)
    return result.output
