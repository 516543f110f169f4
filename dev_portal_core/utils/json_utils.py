import json
import uuid
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Union

from pydantic_core import PydanticSerializationError, to_jsonable_python


class EnhancedJSONEncoder(json.JSONEncoder):
    def default(self, obj):
        if isinstance(obj, Enum):
            return obj.value
        elif isinstance(obj, uuid.UUID):
            return str(obj)
        elif isinstance(obj, Decimal):
            return float(obj)
        elif isinstance(obj, (datetime, date)):
            return obj.isoformat()
        # Pydantic models, dataclasses and friends
        try:
            return to_jsonable_python(obj)
        except PydanticSerializationError:
            return repr(obj)


def dumps(obj: Any, **kwargs) -> str:
    """JSON dumps with enum, UUID, Decimal, datetime and model support."""
    return json.dumps(obj, cls=EnhancedJSONEncoder, **kwargs)


def loads(s: Union[str, bytes, bytearray], **kwargs) -> Any:
    """Standard JSON loads function."""
    return json.loads(s, **kwargs)
