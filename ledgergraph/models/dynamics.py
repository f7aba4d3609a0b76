from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator

from .common import Blob


FlowType = Literal["inflow", "outflow", "biflow"]
SimulationStatus = Literal["running", "completed", "failed"]


class StockCreate(BaseModel):
    entity_type: str = Field(..., min_length=1, max_length=50)
    entity_id: int
    stock_name: str = Field(..., min_length=1, max_length=100)
    current_value: int = Field(..., description="Scaled integer")
    unit: Optional[str] = None
    min_value: Optional[int] = None
    max_value: Optional[int] = None
    initial_value: Optional[int] = None
    attributes: Blob = None

    @model_validator(mode="after")
    def _check_bounds(self):
        if self.min_value is not None and self.max_value is not None and self.min_value > self.max_value:
            raise ValueError("min_value must not exceed max_value")
        return self


class FlowCreate(BaseModel):
    flow_name: str = Field(..., min_length=1, max_length=100)
    source_stock_id: Optional[int] = Field(None, description="None means exogenous source")
    target_stock_id: Optional[int] = Field(None, description="None means exogenous sink")
    flow_type: FlowType
    rate_formula: str = Field(..., description="Stored as text, never evaluated")
    current_rate: Optional[int] = Field(None, description="Scaled integer rate per step")
    unit: Optional[str] = None
    attributes: Blob = None


class SimulationRunCreate(BaseModel):
    run_name: str = Field(..., min_length=1, max_length=255)
    start_time: datetime
    end_time: datetime
    time_step: int = Field(..., gt=0, description="Milliseconds")
    parameters: Blob = None


class SimulationRunUpdate(BaseModel):
    status: Optional[SimulationStatus] = None
    results: Blob = None
    completed_at: Optional[datetime] = None
