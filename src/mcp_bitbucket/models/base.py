"""Base model shared by the Bitbucket payload models."""

from pydantic import BaseModel, ConfigDict


class ApiModel(BaseModel):
    """Base class for models built from Bitbucket API responses.

    Unknown keys are kept so that no part of a server payload is lost when a
    model is dumped back to a dict.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)
