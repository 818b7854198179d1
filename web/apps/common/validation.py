from pydantic import BaseModel, ValidationError

from .errors import InvalidRequest


def parse(schema: type[BaseModel], data) -> BaseModel:
    """Validate ``data`` against a pydantic schema.

    Raises:
        InvalidRequest: With the pydantic error summary when validation fails.
    """
    try:
        return schema.model_validate(data)
    except ValidationError as e:
        raise InvalidRequest(str(e)) from e
