from typing import Annotated, Any, Dict, Optional

from pydantic import Field


BASIS_POINTS_SCALE = 10000

# 0..10000 where 10000 = 100.00%
BasisPoints = Annotated[int, Field(ge=0, le=BASIS_POINTS_SCALE)]

# Minor currency units (cents)
Cents = Annotated[int, Field(ge=0)]

# Uninterpreted JSON object passed through to storage
Blob = Optional[Dict[str, Any]]

