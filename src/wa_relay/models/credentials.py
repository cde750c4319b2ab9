"""
Credential bundle model — the opaque identity handed out by the gateway after pairing.
"""

from pydantic import BaseModel, ConfigDict


class CredentialBundle(BaseModel):
    model_config = ConfigDict(frozen=True)

    client_id: str
    client_token: str
    server_token: str
    enc_key: str
    mac_key: str
    wid: str  # own conversation identifier
