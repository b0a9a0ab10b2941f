from pydantic import BaseModel, Field
from typing import Dict, List

class DenialBody(BaseModel):
    status: int
    message: str

class ClearanceEntry(BaseModel):
    public_key: str
    rank: int
    tier: str

class ClearanceListing(BaseModel):
    keys: List[ClearanceEntry] = Field(default_factory=list)

class ReplayState(BaseModel):
    last_accepted_counter: int
    max_skew_ms: int

class EventCounters(BaseModel):
    counters: Dict[str, Dict[str, int]] = Field(default_factory=dict)

class HealthStatus(BaseModel):
    status: str
    env: str
    operator_keys: int
    config_files: Dict[str, bool] = Field(default_factory=dict)
