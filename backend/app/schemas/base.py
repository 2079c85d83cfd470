"""
Shared pydantic configuration.

Wire format is camelCase; snake_case is accepted on input as well.
"""

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "from_attributes": True,
    }


class RequestModel(CamelModel):
    """Request bodies reject unknown fields."""

    model_config = {**CamelModel.model_config, "extra": "forbid"}
