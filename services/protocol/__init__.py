from services.protocol.schema_validation import (
    SCHEMA_ROOT,
    TIMELINE_SCHEMA,
    ProtocolValidationError,
    ProtocolValidator,
)

__all__ = [
    "SCHEMA_ROOT",
    "TIMELINE_SCHEMA",
    "ProtocolValidationError",
    "ProtocolValidator",
]
