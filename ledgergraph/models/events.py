from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from .common import BasisPoints, Blob


class EventCreate(BaseModel):
    """An immutable record of a state change. caused_by links to the previous event."""
    event_type: str = Field(..., min_length=1, max_length=100)
    timestamp: datetime
    source_entity_id: Optional[int] = None
    source_entity_type: Optional[str] = None
    target_entity_id: Optional[int] = None
    target_entity_type: Optional[str] = None
    state_before: Blob = None
    state_after: Blob = None
    event_data: Blob = None
    caused_by: Optional[int] = None


class StateTransitionCreate(BaseModel):
    entity_type: str = Field(..., min_length=1, max_length=50)
    from_state: str = Field(..., min_length=1, max_length=100)
    to_state: str = Field(..., min_length=1, max_length=100)
    event_type: str = Field(..., min_length=1, max_length=100)
    conditions: Blob = None
    actions: Blob = None
    probability: Optional[BasisPoints] = None
