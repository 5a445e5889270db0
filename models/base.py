from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional

class TimeStampedModel(BaseModel):
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class DocumentModel(TimeStampedModel):
    """A stored document; the Mongo ``_id`` is exposed as ``id``."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="_id")
