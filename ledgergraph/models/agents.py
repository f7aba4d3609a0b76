from typing import Literal, Optional

from pydantic import BaseModel, Field

from .common import Blob


AgentType = Literal["individual", "collective", "population"]


class AgentCreate(BaseModel):
    entity_id: int = Field(..., description="Organization or user id this agent represents")
    entity_type: Literal["organization", "user", "population"]
    agent_type: AgentType
    name: str = Field(..., min_length=1, max_length=255)
    attributes: Blob = None
    state: Blob = None
    behavior_model: Optional[str] = Field(None, description="rational, bounded-rational, learning, ...")
