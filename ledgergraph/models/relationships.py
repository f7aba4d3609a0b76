from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator

from .common import BasisPoints, Blob


RelationshipCategory = Literal[
    "ownership",
    "partnership",
    "transaction",
    "dependency",
    "communication",
    "hierarchy",
    "custom",
]

RelationshipEntityType = Literal["organization", "user", "agent"]

RELATIONSHIP_ENTITY_TYPES = ("organization", "user", "agent")


class RelationshipTypeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, description="Unique type name, e.g. SUPPLIES")
    category: RelationshipCategory
    is_directed: bool = True
    is_weighted: bool = False
    description: Optional[str] = None
    attributes: Blob = None


class RelationshipCreate(BaseModel):
    """A typed edge in the multiplex network between two (entity_id, entity_type) pairs."""
    relationship_type_id: int
    source_entity_id: int
    source_entity_type: RelationshipEntityType
    target_entity_id: int
    target_entity_type: RelationshipEntityType
    weight: Optional[BasisPoints] = Field(None, description="Edge weight in basis points")
    attributes: Blob = None
    valid_from: Optional[datetime] = Field(None, description="Defaults to creation time")
    valid_to: Optional[datetime] = Field(None, description="None means open-ended")

    @model_validator(mode="after")
    def _check_window(self):
        if self.valid_from and self.valid_to and self.valid_to < self.valid_from:
            raise ValueError("valid_to must not precede valid_from")
        return self
