from pydantic import BaseModel, Field, field_validator


class EventNameResponse(BaseModel):
    event_name: str


class EventNameUpdate(BaseModel):
    event_name: str = Field(..., max_length=200)

    @field_validator("event_name")
    @classmethod
    def strip_event_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("event_name is required")
        return v
