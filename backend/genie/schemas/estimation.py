from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any


class ActorInput(BaseModel):
    name: str = ""
    classification: Optional[str] = None
    # kept loose: malformed weights are counted as zero and reported
    weight: Optional[Any] = None


class UseCaseInput(BaseModel):
    name: str = ""
    classification: Optional[str] = None
    transaction_count: Optional[Any] = None
    weight: Optional[Any] = None


class EstimateRequest(BaseModel):
    actors: List[ActorInput] = Field(default_factory=list)
    use_cases: List[UseCaseInput] = Field(default_factory=list)
    tcf: Optional[float] = None
    ecf: Optional[float] = None
    phm_multiplier: Optional[float] = None


class EstimateResponse(BaseModel):
    metrics: Dict[str, float]
    rows: List[Dict[str, Any]]
    summary: Dict[str, float]
    warnings: List[Dict[str, Any]] = Field(default_factory=list)
    table: List[List[str]] = Field(default_factory=list, description="RAB rows formatted for display")


class ComplexityRequest(BaseModel):
    technical: Dict[str, float] = Field(default_factory=dict, description="Ratings 0-5 keyed T1..T13")
    environmental: Dict[str, float] = Field(default_factory=dict, description="Ratings 0-5 keyed E1..E8")


class ComplexityResponse(BaseModel):
    tcf: float
    ecf: float
    technical: Dict[str, Any]
    environmental: Dict[str, Any]
