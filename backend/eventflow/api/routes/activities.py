from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from eventflow.api.deps import get_actor_id, get_db
from eventflow.schemas.activity import ActivityCreate, ActivityOut, ActivityUpdate, ConflictCheckRequest
from eventflow.schemas.conflict import ScheduleConflictReport
from eventflow.services import activities as activity_service
from eventflow.services.conflict_service import ScheduleConflictService

router = APIRouter()


@router.post("/activities", response_model=ActivityOut, status_code=status.HTTP_201_CREATED)
def create_activity(
    payload: ActivityCreate,
    actor_id: str | None = Depends(get_actor_id),
    db: Session = Depends(get_db),
) -> ActivityOut:
    return activity_service.create_activity(db, payload, actor_id=actor_id)


@router.post("/activities/conflicts", response_model=ScheduleConflictReport)
def preview_conflicts(payload: ConflictCheckRequest, db: Session = Depends(get_db)) -> ScheduleConflictReport:
    return ScheduleConflictService(db).detect(
        title=payload.title,
        schedules=payload.schedules,
        teaching_user_ids=payload.teaching_user_ids,
        activity_id=payload.activity_id,
    )


@router.get("/activities/{activity_id}", response_model=ActivityOut)
def get_activity(activity_id: str, db: Session = Depends(get_db)) -> ActivityOut:
    return activity_service.get_activity(db, activity_id)


@router.put("/activities/{activity_id}", response_model=ActivityOut)
def update_activity(
    activity_id: str,
    payload: ActivityUpdate,
    actor_id: str | None = Depends(get_actor_id),
    db: Session = Depends(get_db),
) -> ActivityOut:
    return activity_service.edit_activity(db, activity_id, payload, actor_id=actor_id)


@router.delete("/activities/{activity_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_activity(
    activity_id: str,
    actor_id: str | None = Depends(get_actor_id),
    db: Session = Depends(get_db),
) -> Response:
    activity_service.delete_activity(db, activity_id, actor_id=actor_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
