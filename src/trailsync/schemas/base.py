"""Shared pydantic base for request/response schemas.

Learn: The public JSON uses camelCase (refreshToken, mapLink,
numberOfDays) while Python code stays snake_case. The alias generator
does the translation; populate_by_name lets both spellings in.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
