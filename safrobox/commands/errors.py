"""
Typed error classes for safrobox.

This module provides the error hierarchy used by the commands:
- SafroboxError: Base exception for all safrobox errors
- PreconditionError: A required external dependency is missing
- PortExhaustedError: No free port left in the probe window of a role
- RetrievalError: A status or command call returned nothing usable
- ValidationError: Operator input was rejected
- NodeError: The node container is missing or not running
- CommandError: A node binary invocation failed
- ConfigurationError: Node configuration files are missing or malformed
"""

from typing import Any, Optional


class SafroboxError(Exception):
    """Base exception class for all safrobox errors.

    Attributes:
        message: Human-readable error message
        code: Optional error code for programmatic handling
        details: Optional dictionary with additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to a dictionary for serialization."""
        result: dict[str, Any] = {
            "type": self.__class__.__name__,
            "message": self.message,
        }
        if self.code:
            result["code"] = self.code
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message


class PreconditionError(SafroboxError):
    """A required external dependency is not available.

    Raised before any state is mutated.
    """

    def __init__(
        self,
        message: str,
        dependency: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        self.dependency = dependency
        details = details or {}
        if dependency:
            details["dependency"] = dependency
        super().__init__(
            message, code=code or "PRECONDITION_FAILED", details=details
        )


class DockerUnavailableError(PreconditionError):
    """Raised when the Docker daemon cannot be reached."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(
            message, dependency="docker", code="DOCKER_UNAVAILABLE", details=details
        )


class PortExhaustedError(SafroboxError):
    """Raised when no free port exists in the probe window of a role.

    The operator has to free a port manually; retrying will not help.
    """

    def __init__(
        self,
        role: str,
        start: int,
        end: int,
        details: Optional[dict[str, Any]] = None,
    ):
        self.role = role
        self.start = start
        self.end = end
        details = details or {}
        details.update({"role": role, "start": start, "end": end})
        super().__init__(
            f"Could not find an available {role} port in range {start}-{end}",
            code="PORT_EXHAUSTED",
            details=details,
        )


class RetrievalError(SafroboxError):
    """Raised when a node query returns empty or unparseable output."""

    def __init__(
        self,
        message: str,
        output: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        self.output = output
        super().__init__(message, code="RETRIEVAL_FAILED", details=details)


class ValidationError(SafroboxError):
    """Input validation errors.

    Raised when:
    - A secret (mnemonic or private key) is empty
    - A name or moniker is malformed
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        self.field = field
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, code=code or "VALIDATION_FAILED", details=details)


class NodeError(SafroboxError):
    """Errors related to the node container."""

    def __init__(
        self,
        message: str,
        node_ref: Optional[str] = None,
        hint: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        self.node_ref = node_ref
        self.hint = hint
        details = details or {}
        if node_ref:
            details["node_ref"] = node_ref
        super().__init__(message, code=code, details=details)


class NodeNotRunningError(NodeError):
    """Raised when an operation needs the node container to be running."""

    def __init__(
        self,
        message: str,
        node_ref: Optional[str] = None,
        hint: Optional[str] = None,
    ):
        super().__init__(
            message, node_ref=node_ref, hint=hint, code="NODE_NOT_RUNNING"
        )


class CommandError(SafroboxError):
    """Raised when a node binary invocation exits non-zero."""

    def __init__(
        self,
        message: str,
        args: Optional[list[str]] = None,
        exit_code: Optional[int] = None,
        output: Optional[str] = None,
    ):
        self.command_args = list(args or [])
        self.exit_code = exit_code
        self.output = output
        details: dict[str, Any] = {}
        if args:
            details["args"] = list(args)
        if exit_code is not None:
            details["exit_code"] = exit_code
        super().__init__(message, code="COMMAND_FAILED", details=details)


class ConfigurationError(SafroboxError):
    """Configuration-related errors.

    Raised when:
    - A node config file is missing or malformed
    - A persisted value cannot be used
    """

    def __init__(
        self,
        message: str,
        config_file: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        self.config_file = config_file
        details = details or {}
        if config_file:
            details["config_file"] = config_file
        super().__init__(
            message, code=code or "CONFIGURATION_ERROR", details=details
        )


__all__ = [
    "SafroboxError",
    "PreconditionError",
    "DockerUnavailableError",
    "PortExhaustedError",
    "RetrievalError",
    "ValidationError",
    "NodeError",
    "NodeNotRunningError",
    "CommandError",
    "ConfigurationError",
]
