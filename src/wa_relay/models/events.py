"""
Gateway event names.
"""


class C2SEvent:
    """Client → gateway."""
    SESSION_LOGIN = "session:login"
    SESSION_RESTORE = "session:restore"
    SESSION_LOGOUT = "session:logout"
    ADMIN_TEST = "admin:test"
    MESSAGE_SEND = "message:send"


class S2CEvent:
    """Gateway → client."""
    READY = "ready"
    PAIRING_CODE = "pairing:code"
    PAIRING_SUCCESS = "pairing:success"
    PAIRING_FAILED = "pairing:failed"
    MESSAGE_TEXT = "message:text"
    ERROR = "error"
