from types import MappingProxyType
from typing import Any, Dict, Mapping

from pydantic import BaseModel, ConfigDict, field_validator


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return MappingProxyType({key: _freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(item) for item in value)
    return value


def _thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {key: _thaw(item) for key, item in value.items()}
    if isinstance(value, tuple):
        return [_thaw(item) for item in value]
    return value


class ModelPayload(BaseModel):
    """
    Envelope delivered to the collector.

    Immutable once built: ``data`` is stored as read-only mappings and
    tuples, leaf values are kept as given. ``data["uuid"]`` is the
    correlation handle returned to the caller.
    """
    model_config = ConfigDict(frozen=True)

    access_token: str
    data: Any

    @field_validator("data")
    @classmethod
    def _freeze_data(cls, v: Any) -> Mapping[str, Any]:
        if not isinstance(v, Mapping):
            raise ValueError("payload data must be a mapping")
        return _freeze(v)

    @property
    def uuid(self) -> str:
        return self.data["uuid"]

    def to_dict(self) -> Dict[str, Any]:
        """Mutable copy in wire shape, safe to serialize or change."""
        return {
            "access_token": self.access_token,
            "data": _thaw(self.data),
        }
