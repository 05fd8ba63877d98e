"""Error types for knit.

Every failure a bootstrap step can hit is raised as a KnitError subclass.
Steps never terminate the process themselves; the orchestrator catches
KnitError, stops the run and reports, and the CLI decides the exit status.
"""

from dataclasses import dataclass, field

# AWS error code that means "this secret has never been archived"
NOT_FOUND_CODE = "ResourceNotFoundException"


@dataclass
class KnitError(Exception):
    """Base error class for knit errors."""

    message: str

    def __str__(self) -> str:
        return self.message


@dataclass
class CommandError(KnitError):
    """An external command exited non-zero or could not be started."""

    command: str = ""
    output: str = ""
    returncode: int | None = None


@dataclass
class CloudAPIError(KnitError):
    """An AWS API call failed for any reason other than an expected absence."""

    service: str = ""
    operation: str = ""
    code: str | None = None


@dataclass
class KeyArchiveError(KnitError):
    """The archived or in-cluster master key is in a state we cannot reconcile."""


@dataclass
class PrerequisiteError(KnitError):
    """Required executables are missing from PATH."""

    missing: list[str] = field(default_factory=list)


@dataclass
class ConfigError(KnitError):
    """Required bootstrap parameters are missing."""

    missing: list[str] = field(default_factory=list)


def map_client_error(exc: Exception, service: str, operation: str) -> CloudAPIError:
    """Map a botocore exception to CloudAPIError.

    Args:
        exc: ClientError or BotoCoreError raised by a boto3 client
        service: AWS service name (e.g. "route53")
        operation: API operation that failed

    Returns:
        CloudAPIError carrying the AWS error code when there is one
    """
    response = getattr(exc, "response", None) or {}
    code = response.get("Error", {}).get("Code")
    return CloudAPIError(
        message=f"{service} {operation} failed: {exc}",
        service=service,
        operation=operation,
        code=code,
    )
