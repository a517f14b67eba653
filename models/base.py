from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class CamelModel(BaseModel):
    """
    Base for DTOs that travel over HTTP.

    The web client speaks camelCase (productId, minAmount, ...), Python code
    uses snake_case attribute names. Both spellings are accepted on input.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
