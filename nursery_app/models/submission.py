"""
Base model for stored submissions
"""
from pydantic import BaseModel
from typing import Any, Dict


class SubmissionRecord(BaseModel):
    """Normalised submission as it is written to MongoDB.

    The pipeline adds type, status, reference and the audit fields when it
    persists the record, so subclasses only describe the form content.
    """

    model_config = {"extra": "allow", "populate_by_name": True}

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump()
