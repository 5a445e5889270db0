from pydantic import BaseModel, StrictBool

class BlockRequest(BaseModel):
    is_blocked: StrictBool
