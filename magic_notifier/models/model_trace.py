from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from magic_notifier.models.model_frame import ModelFrame


class ModelExceptionInfo(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    class_name: str = Field(alias="class")
    message: str = ""


class ModelTraceChainEntry(BaseModel):
    """
    One exception of a trace chain.

    Serialized as ``{"frames": [...], "exception": {"class", "message"},
    "extra": {...}}``; ``extra`` is only present on the outermost entry.
    """
    model_config = ConfigDict(frozen=True)

    exception: ModelExceptionInfo
    frames: List[ModelFrame] = Field(default_factory=list)
    extra: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "frames": [frame.to_dict() for frame in self.frames],
            "exception": self.exception.model_dump(by_alias=True),
        }
        if self.extra is not None:
            data["extra"] = dict(self.extra)
        return data
