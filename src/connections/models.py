from pydantic import BaseModel


class ConnectResponse(BaseModel):
    """Response of POST /stattaq/connect. The frontend keeps `state` to match the callback."""

    success: bool = True
    auth_url: str
    state: str


class DisconnectResponse(BaseModel):
    success: bool = True
