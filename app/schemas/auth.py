from pydantic import BaseModel


class Identity(BaseModel):
    """Authenticated caller, resolved once per request from the bearer token."""

    id: str
    administrative: bool = False

    model_config = {"frozen": True}
