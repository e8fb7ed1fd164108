from magic_notifier.models.model_frame import ModelFrame
from magic_notifier.models.model_payload import ModelPayload
from magic_notifier.models.model_trace import ModelExceptionInfo, ModelTraceChainEntry

__all__ = [
    "ModelFrame",
    "ModelPayload",
    "ModelExceptionInfo",
    "ModelTraceChainEntry",
]
