"""Scan job payload schema.

The payload is the only thing shared between the enqueuer (API) and the
worker. It is versioned so both sides can evolve independently: a worker
rejects schema versions it does not understand instead of guessing.
"""

from typing import Any, Dict, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

SCAN_JOB_SCHEMA_VERSION = 1


class ScanJob(BaseModel):
    """Scan request for one document version.

    Attributes:
        schema_version: Payload schema version (currently 1)
        version_id: DocumentVersion UUID to resolve
        file_locator: Storage key of the content to scan
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    schema_version: Literal[1] = SCAN_JOB_SCHEMA_VERSION
    version_id: UUID
    file_locator: str = Field(min_length=1)

    def to_payload(self) -> Dict[str, Any]:
        """JSON-serializable payload for the broker."""
        return self.model_dump(mode="json")

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "ScanJob":
        """Parse a broker payload.

        Raises:
            pydantic.ValidationError: If the payload does not match schema v1
        """
        return cls.model_validate(payload)
