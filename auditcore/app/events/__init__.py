from .models import AuditEvent, AuditEventType
from .emitter import AuditEventEmitter, NullEventEmitter
from .memory_emitter import MemoryQueueEventEmitter, RecordingEventEmitter

__all__ = [
    "AuditEvent",
    "AuditEventType",
    "AuditEventEmitter",
    "NullEventEmitter",
    "MemoryQueueEventEmitter",
    "RecordingEventEmitter",
]
