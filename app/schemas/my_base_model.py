import logging
from typing import Any

from pydantic import BaseModel

logger = logging.getLogger(__name__)

_SIMPLE_TYPES = (dict, str, bool, int, float)


class CustomBaseModel(BaseModel):
    """Custom base model for all response schemas.
    - coerce simple typed fields before init
    - fall back to the field default (or an empty value) when coercion fails
    """

    def __init__(self, **data: Any) -> None:
        fields = self.__class__.model_fields
        for attr, value in data.items():
            field = fields.get(attr)
            if field is None or field.annotation not in _SIMPLE_TYPES:
                continue

            attr_type = field.annotation
            try:  #  try to convert the value to the type of the attribute
                data[attr] = attr_type(value)
            except Exception:
                logger.warning("Invalid value for key: %s, using default", attr)
                if field.is_required():
                    data[attr] = attr_type()
                else:
                    data[attr] = field.get_default(call_default_factory=True)
        super().__init__(**data)

