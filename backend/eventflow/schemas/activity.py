from datetime import datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from eventflow.core.clock import as_naive_utc


class ScheduleIn(BaseModel):
    id: str | None = None
    start_date: datetime
    duration_in_minutes: int = Field(ge=1)
    room_id: str | None = None
    url: str | None = Field(default=None, max_length=300)

    @field_validator("start_date")
    @classmethod
    def normalize_start_date(cls, value: datetime) -> datetime:
        return as_naive_utc(value)

    @field_validator("url")
    @classmethod
    def blank_url_is_absent(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value.strip()

    @model_validator(mode="after")
    def validate_location(self) -> "ScheduleIn":
        if (self.room_id is None) == (self.url is None):
            raise ValueError("A schedule needs either a room_id or a url, but not both")
        return self


class ScheduleOut(BaseModel):
    id: str
    start_date: datetime
    duration_in_minutes: int
    room_id: str | None
    url: str | None

    model_config = {"from_attributes": True}


class UserSummary(BaseModel):
    id: str
    name: str

    model_config = {"from_attributes": True}


class ActivityCreate(BaseModel):
    title: str = Field(min_length=1, max_length=100)
    description: str = Field(default="", max_length=1500)
    vacancy: int = Field(ge=1)
    workload_in_minutes: int = Field(ge=1)
    event_id: str
    activity_category_id: str
    schedules: list[ScheduleIn] = Field(min_length=1, max_length=100)
    responsible_user_ids: list[str] = Field(min_length=1)
    teaching_user_ids: list[str] = Field(default_factory=list)


class ActivityUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=1500)
    vacancy: int | None = Field(default=None, ge=1)
    workload_in_minutes: int | None = Field(default=None, ge=1)
    ready_for_certificate_emission: bool | None = None
    event_id: str | None = None
    activity_category_id: str | None = None
    schedules: list[ScheduleIn] | None = Field(default=None, max_length=100)
    responsible_user_ids: list[str] | None = None
    teaching_user_ids: list[str] | None = None


class ActivityOut(BaseModel):
    id: str
    title: str
    description: str
    vacancy: int
    workload_in_minutes: int
    ready_for_certificate_emission: bool
    index_in_category: int
    event_id: str
    activity_category_id: str
    schedules: list[ScheduleOut]
    responsible_users: list[UserSummary]
    teaching_users: list[UserSummary]

    model_config = {"from_attributes": True}


class ConflictCheckRequest(BaseModel):
    activity_id: str | None = None
    title: str = Field(min_length=1, max_length=100)
    schedules: list[ScheduleIn] = Field(min_length=1, max_length=100)
    teaching_user_ids: list[str] = Field(default_factory=list)
