"""Base model for the descriptors handed to the runner."""

from pydantic import BaseModel, ConfigDict


class Model(BaseModel):
    """Immutable model rejecting fields it does not know about."""

    model_config = ConfigDict(frozen=True, extra="forbid")
