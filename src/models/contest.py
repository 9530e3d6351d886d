from enum import Enum
from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any
from pathlib import Path
import json

from pydantic import BaseModel, Field, field_validator

from src.models.contracts import Contract


class ContestStatus(Enum):
    ONGOING = "ongoing"
    UPCOMING = "upcoming"


class ContestRecord(BaseModel):
    """input record for one repository to inventory"""

    name: str = Field(..., description="Contest name.")
    description: str = Field("", description="Short contest description.")
    uri: str = Field("", description="Contest detail page.")
    repo_uri: Optional[str] = Field(None, description="Source repository location.")
    status: ContestStatus = ContestStatus.UPCOMING

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("contest name must not be empty")
        return value

    @field_validator("repo_uri")
    @classmethod
    def _strip_repo_uri(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip() or None


@dataclass
class Contest:
    name: str
    description: str
    uri: str = ""
    repo_uri: Optional[str] = None
    status: ContestStatus = ContestStatus.UPCOMING
    contracts: List[Contract] = field(default_factory=list)

    @classmethod
    def from_record(cls, record: ContestRecord) -> "Contest":
        return cls(
            name=record.name,
            description=record.description,
            uri=record.uri,
            repo_uri=record.repo_uri,
            status=record.status,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "uri": self.uri,
            "repo_uri": self.repo_uri,
            "status": self.status.value,
            "contracts": [c.to_dict() for c in self.contracts],
        }

    def __repr__(self) -> str:
        return f"Contest({self.name}, {len(self.contracts)} contracts)"


def load_contests(path: Path) -> List[Contest]:
    """read a json list of contest records"""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"Expected a JSON list of contest records in {path}")
    return [Contest.from_record(ContestRecord.model_validate(item)) for item in data]
