"""
wa-relay error types.

Every error carries an ErrorKind so callers match on kind, never on text.
"""

from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    INIT = "init_error"
    INVALID_STATE = "invalid_state"
    SESSION_ALREADY_EXISTS = "session_already_exists"
    SESSION_NOT_FOUND = "session_not_found"
    SESSION_CORRUPT = "session_corrupt"
    CREDENTIAL_NOT_FOUND = "credential_not_found"
    CREDENTIAL_CORRUPT = "credential_corrupt"
    CONNECTION_FAILED = "connection_failed"
    SERVER_CLOSED = "server_closed"
    SEND_TIMEOUT = "send_timeout"
    PING_FAILED = "ping_failed"
    COMMAND_EXECUTION = "command_execution"
    TRANSPORT = "transport_error"


class RelayError(Exception):
    def __init__(self, code: ErrorKind, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details


class InitError(RelayError):
    def __init__(self, message: str):
        super().__init__(ErrorKind.INIT, message)


class InvalidState(RelayError):
    def __init__(self, message: str):
        super().__init__(ErrorKind.INVALID_STATE, message)


class SessionError(RelayError):
    def __init__(self, message: str, code: ErrorKind, details: Optional[dict[str, Any]] = None):
        super().__init__(code, message, details)


class SessionAlreadyExists(SessionError):
    def __init__(self, message: str = "session file already exist, please logout first"):
        super().__init__(message, ErrorKind.SESSION_ALREADY_EXISTS)


class SessionNotFound(SessionError):
    def __init__(self, message: str = "session file doesn't exist, please login first"):
        super().__init__(message, ErrorKind.SESSION_NOT_FOUND)


class SessionCorrupt(SessionError):
    def __init__(self, message: str = "session not valid, removing session file"):
        super().__init__(message, ErrorKind.SESSION_CORRUPT)


class CredentialError(RelayError):
    pass


class CredentialNotFound(CredentialError):
    def __init__(self, path: str):
        super().__init__(ErrorKind.CREDENTIAL_NOT_FOUND, f"credential file not found: {path}", {"path": path})


class CredentialCorrupt(CredentialError):
    def __init__(self, path: str, reason: str):
        super().__init__(ErrorKind.CREDENTIAL_CORRUPT, f"credential file is corrupt: {path}: {reason}", {"path": path})


class ConnectionFailed(RelayError):
    def __init__(self, message: str = "connection closed unexpectedly"):
        super().__init__(ErrorKind.CONNECTION_FAILED, message)


class PingFailed(RelayError):
    def __init__(self, message: str = "something went wrong while trying to ping, please check phone connectivity"):
        super().__init__(ErrorKind.PING_FAILED, message)


class CommandExecutionError(RelayError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(ErrorKind.COMMAND_EXECUTION, message, details)


class TransportError(RelayError):
    def __init__(self, message: str, kind: ErrorKind = ErrorKind.TRANSPORT, details: Optional[dict[str, Any]] = None):
        super().__init__(kind, message, details)


def error_kind(exc: BaseException) -> ErrorKind:
    """Return the ErrorKind of any exception; foreign exceptions count as transport errors."""
    if isinstance(exc, RelayError):
        return exc.code
    return ErrorKind.TRANSPORT
