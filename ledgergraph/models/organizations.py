from datetime import date
from typing import Optional

from pydantic import BaseModel, Field

from .common import BasisPoints, Blob


class OrganizationCreate(BaseModel):
    name: str = Field(..., min_length=1, description="Organization name")
    owner_id: int = Field(..., description="Id of the user that owns this organization")
    parent_id: Optional[int] = Field(None, description="Legacy single parent in the organization tree")
    description: Optional[str] = None


class OrganizationUpdate(BaseModel):
    """Partial update; only fields explicitly set are written."""
    name: Optional[str] = Field(None, min_length=1)
    parent_id: Optional[int] = None
    description: Optional[str] = None


class ShareholdingCreate(BaseModel):
    child_org_id: int = Field(..., description="Organization whose shares are held")
    parent_org_id: int = Field(..., description="Shareholder organization")
    share_percentage: BasisPoints = Field(..., description="Ownership in basis points (10000 = 100%)")
    voting_rights: Optional[BasisPoints] = Field(None, description="Voting rights in basis points, may differ from ownership")
    share_class: Optional[str] = Field(None, description="common, preferred, voting, ...")
    acquisition_date: Optional[date] = None
    attributes: Blob = None
