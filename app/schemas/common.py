"""
Shared schema types.
"""
from datetime import datetime
from typing import Annotated, Any, Dict, Type

from pydantic import BaseModel, PlainSerializer

from app.utils.datetime_utils import to_iso_utc

# Serializes as ISO 8601 with a 'Z' suffix, also for naive values read back from SQLite
UTCDateTime = Annotated[
    datetime,
    PlainSerializer(to_iso_utc, return_type=str, when_used="json"),
]


def to_payload(schema: Type[BaseModel], data: Any) -> Dict[str, Any]:
    """
    Render service data as a JSON-ready camelCase dict (realtime payloads).

    Example:
        ```python
        payload = to_payload(MessageResponse, message_view)
        ```
    """
    return schema.model_validate(data).model_dump(mode="json", by_alias=True)
