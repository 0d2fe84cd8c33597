from datetime import datetime

from pydantic import BaseModel, EmailStr, Field


class PresenceOut(BaseModel):
    id: str
    schedule_id: str
    is_present: bool

    model_config = {"from_attributes": True}


class RegistrantOut(BaseModel):
    id: str
    name: str
    email: EmailStr

    model_config = {"from_attributes": True}


class RegistryOut(BaseModel):
    id: str
    user_id: str
    activity_id: str
    registry_date: datetime
    ready_for_certificate: bool
    rating: int
    user: RegistrantOut
    presences: list[PresenceOut]

    model_config = {"from_attributes": True}


class RatingUpdate(BaseModel):
    rating: int = Field(ge=0, le=5)
