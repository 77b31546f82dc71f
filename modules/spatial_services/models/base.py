"""Base model and request parsing helpers for the spatial services.

Inbound payloads arrive JSON-shaped with camelCase keys; results are
serialized back with the same aliases.
"""

from typing import Any, Dict, Type, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from gnaf_core.exceptions import InvalidInputError


class SpatialModel(BaseModel):
    """Base for request and result models exchanged with the transport layer."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_response(self) -> Dict[str, Any]:
        """Serialize with camelCase keys, plain numbers and ISO-8601 timestamps."""
        return self.model_dump(mode="json", by_alias=True)


ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_request(model_cls: Type[ModelT], payload: Any) -> ModelT:
    """Validate ``payload`` into ``model_cls``.

    Raises:
        InvalidInputError: Listing every offending field when validation fails
    """
    if isinstance(payload, model_cls):
        return payload
    try:
        return model_cls.model_validate(payload)
    except ValidationError as e:
        fields = sorted({".".join(str(part) for part in err["loc"]) or "payload" for err in e.errors()})
        raise InvalidInputError(
            f"Invalid {model_cls.__name__}: {e.error_count()} validation error(s)",
            {"fields": ", ".join(fields)}
        ) from e
