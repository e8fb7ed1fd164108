from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict


class ModelFrame(BaseModel):
    """One stack frame of a trace."""
    model_config = ConfigDict(frozen=True)

    filename: str
    lineno: Optional[int] = None
    method: Optional[str] = None
    code: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)
