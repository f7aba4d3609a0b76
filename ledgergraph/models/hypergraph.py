from typing import List, Optional

from pydantic import BaseModel, Field

from .common import BasisPoints, Blob


class HypergraphNodeCreate(BaseModel):
    node_type: str = Field(..., min_length=1, max_length=50, description="organization, user, agent, ...")
    entity_id: int
    label: str = Field(..., min_length=1, max_length=255)
    properties: Blob = None
    embedding: Optional[List[float]] = Field(None, description="Vector embedding for similarity")


class HyperedgeCreate(BaseModel):
    edge_type: str = Field(..., min_length=1, max_length=50)
    label: Optional[str] = Field(None, max_length=255)
    weight: Optional[BasisPoints] = None
    properties: Blob = None


class IncidenceCreate(BaseModel):
    hyperedge_id: int
    node_id: int
    role: Optional[str] = Field(None, max_length=50, description="Participant role, free text")
    weight: Optional[BasisPoints] = None
