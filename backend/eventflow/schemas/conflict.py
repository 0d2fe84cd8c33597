from pydantic import BaseModel


class ConflictData(BaseModel):
    activityName: str
    eventName: str
    roomName: str | None = None
    index: int


class DateConflictOut(BaseModel):
    message: str
    data: list[ConflictData]


class ScheduleConflictReport(BaseModel):
    self_conflicts: list[ConflictData] = []
    teacher_conflicts: list[ConflictData] = []
    room_conflicts: list[ConflictData] = []

    @property
    def has_conflicts(self) -> bool:
        return bool(self.self_conflicts or self.teacher_conflicts or self.room_conflicts)
