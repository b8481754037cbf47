from typing import Protocol, Any


class Serializer(Protocol):
    """
    Defines the interface for encoding/decoding the records persisted by
    embedded store backends.

    Implementations must be:
    - deterministic
    - pure (no side effects)
    - able to round-trip bytes keys and values unchanged
    """

    def serialize(self, message: Any) -> bytes:
        """Encode a Python object into bytes suitable for storage."""

    def deserialize(self, data: bytes) -> Any:
        """Decode stored bytes back into a Python object."""
