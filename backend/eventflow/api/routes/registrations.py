from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from eventflow.api.deps import get_actor_id, get_db
from eventflow.schemas.registry import PresenceOut, RatingUpdate, RegistryOut
from eventflow.services import presences as presence_service
from eventflow.services import registrations as registry_service

router = APIRouter()


@router.post(
    "/activities/{activity_id}/registry/{user_id}",
    response_model=RegistryOut,
    status_code=status.HTTP_201_CREATED,
)
def register(
    activity_id: str,
    user_id: str,
    actor_id: str | None = Depends(get_actor_id),
    db: Session = Depends(get_db),
) -> RegistryOut:
    return registry_service.register(db, activity_id, user_id, actor_id=actor_id)


@router.post(
    "/activities/{activity_id}/responsible-registry/{user_id}",
    response_model=RegistryOut,
    status_code=status.HTTP_201_CREATED,
)
def responsible_register(
    activity_id: str,
    user_id: str,
    actor_id: str | None = Depends(get_actor_id),
    db: Session = Depends(get_db),
) -> RegistryOut:
    return registry_service.responsible_register(db, activity_id, user_id, actor_id=actor_id)


@router.get("/activities/{activity_id}/registry/{user_id}", response_model=RegistryOut)
def get_registration(activity_id: str, user_id: str, db: Session = Depends(get_db)) -> RegistryOut:
    return registry_service.get_registration(db, activity_id, user_id)


@router.delete("/activities/{activity_id}/registry/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_registration(
    activity_id: str,
    user_id: str,
    actor_id: str | None = Depends(get_actor_id),
    db: Session = Depends(get_db),
) -> Response:
    registry_service.delete_registration(db, activity_id, user_id, actor_id=actor_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/activities/{activity_id}/registry/{user_id}/rating", response_model=RegistryOut)
def rate_activity(
    activity_id: str,
    user_id: str,
    payload: RatingUpdate,
    db: Session = Depends(get_db),
) -> RegistryOut:
    return registry_service.set_rating(db, activity_id, user_id, payload.rating)


@router.post("/activities/presence/schedule/{schedule_id}/user/{user_id}", response_model=PresenceOut)
def mark_present(
    schedule_id: str,
    user_id: str,
    actor_id: str | None = Depends(get_actor_id),
    db: Session = Depends(get_db),
) -> PresenceOut:
    return presence_service.mark_present(db, user_id, schedule_id, actor_id=actor_id)


@router.delete("/activities/presence/schedule/{schedule_id}/user/{user_id}", response_model=PresenceOut)
def mark_absent(
    schedule_id: str,
    user_id: str,
    actor_id: str | None = Depends(get_actor_id),
    db: Session = Depends(get_db),
) -> PresenceOut:
    return presence_service.mark_absent(db, user_id, schedule_id, actor_id=actor_id)
