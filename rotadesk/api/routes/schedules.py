from typing import List, NoReturn, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from rotadesk.api.deps import get_db, require_manager_or_admin, check_venue_access, is_admin
from rotadesk.core.security import TokenData
from rotadesk.db.models.shift_assignments import ShiftAssignments
from rotadesk.db.models.shift_schedules import ShiftSchedules
from rotadesk.schemas.shift_schedules import (
    AssignmentResponse,
    GenerateRequest,
    GenerationResponse,
    PublishRequest,
    PublishResponse,
    ScheduleCreate,
    ScheduleResponse,
    StatusResponse,
    ValidationResponse,
)
from rotadesk.services.scheduling import (
    InvalidScheduleInputError,
    InvalidTransitionError,
    ScheduleConflictError,
    ScheduleNotFoundError,
    SolverOptions,
    TransitionGuardError,
    archive_schedule,
    generate_schedule,
    publish_schedule,
    submit_for_review,
    validate_schedule,
)
from rotadesk.services.scheduling.repository import create_schedule

router = APIRouter(prefix="/schedules", tags=["schedules"])


def _get_schedule_or_404(db: Session, schedule_id: int, actor: TokenData) -> ShiftSchedules:
    schedule = db.get(ShiftSchedules, schedule_id)
    if not schedule:
        raise HTTPException(status_code=404, detail="Schedule not found")
    if not check_venue_access(actor, schedule.venue_id):
        raise HTTPException(status_code=403, detail="No access to this venue")
    return schedule


def _raise_http(e: Exception) -> NoReturn:
    if isinstance(e, ScheduleNotFoundError):
        raise HTTPException(status_code=404, detail=str(e))
    if isinstance(e, ScheduleConflictError):
        raise HTTPException(status_code=409, detail=str(e))
    if isinstance(e, TransitionGuardError):
        raise HTTPException(status_code=400, detail={
            "error": e.reason,
            "warnings": [w.to_dict() for w in e.warnings],
        })
    if isinstance(e, (InvalidTransitionError, InvalidScheduleInputError)):
        raise HTTPException(status_code=400, detail=str(e))
    raise e


@router.post("", response_model=ScheduleResponse, status_code=status.HTTP_201_CREATED)
def create(
    payload: ScheduleCreate,
    db: Session = Depends(get_db),
    actor: TokenData = Depends(require_manager_or_admin),
):
    if not check_venue_access(actor, payload.venue_id):
        raise HTTPException(status_code=403, detail="No access to this venue")
    try:
        return create_schedule(
            db,
            venue_id=payload.venue_id,
            name=payload.name,
            start_date=payload.start_date,
            end_date=payload.end_date,
            notes=payload.notes,
            created_by_user_id=actor.user_id,
        )
    except InvalidScheduleInputError as e:
        _raise_http(e)


@router.get("", response_model=List[ScheduleResponse])
def list_schedules(
    venue_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    actor: TokenData = Depends(require_manager_or_admin),
):
    stmt = select(ShiftSchedules)
    # managers only see their own venue
    if not (is_admin(actor) and actor.venue_id is None):
        if actor.venue_id is None:
            raise HTTPException(status_code=403, detail="No venue assigned")
        if venue_id is not None and venue_id != actor.venue_id:
            raise HTTPException(status_code=403, detail="No access to this venue")
        venue_id = actor.venue_id
    if venue_id is not None:
        stmt = stmt.where(ShiftSchedules.venue_id == venue_id)
    stmt = stmt.order_by(ShiftSchedules.start_date.desc()).offset(skip).limit(limit)
    return db.execute(stmt).scalars().all()


@router.get("/{schedule_id}", response_model=ScheduleResponse)
def get_schedule(
    schedule_id: int,
    db: Session = Depends(get_db),
    actor: TokenData = Depends(require_manager_or_admin),
):
    return _get_schedule_or_404(db, schedule_id, actor)


@router.get("/{schedule_id}/assignments", response_model=List[AssignmentResponse])
def list_assignments(
    schedule_id: int,
    db: Session = Depends(get_db),
    actor: TokenData = Depends(require_manager_or_admin),
):
    _get_schedule_or_404(db, schedule_id, actor)
    stmt = (
        select(ShiftAssignments)
        .where(ShiftAssignments.schedule_id == schedule_id)
        .order_by(ShiftAssignments.start_datetime, ShiftAssignments.staff_id)
    )
    return db.execute(stmt).scalars().all()


@router.post("/{schedule_id}/generate", response_model=GenerationResponse)
def generate(
    schedule_id: int,
    payload: Optional[GenerateRequest] = None,
    db: Session = Depends(get_db),
    actor: TokenData = Depends(require_manager_or_admin),
):
    _get_schedule_or_404(db, schedule_id, actor)
    options = SolverOptions(**(payload or GenerateRequest()).model_dump())
    try:
        result = generate_schedule(db, schedule_id, options)
    except (ScheduleNotFoundError, InvalidTransitionError, TransitionGuardError,
            InvalidScheduleInputError, ScheduleConflictError) as e:
        _raise_http(e)

    return {
        "schedule_id": schedule_id,
        "success": result.success,
        "stats": result.stats.to_dict(),
        "warnings": [w.to_dict() for w in result.warnings],
    }


@router.get("/{schedule_id}/validate", response_model=ValidationResponse)
def validate(
    schedule_id: int,
    db: Session = Depends(get_db),
    actor: TokenData = Depends(require_manager_or_admin),
):
    _get_schedule_or_404(db, schedule_id, actor)
    try:
        result = validate_schedule(db, schedule_id)
    except (ScheduleNotFoundError, InvalidScheduleInputError) as e:
        _raise_http(e)

    return {
        "schedule_id": schedule_id,
        "is_valid": result.is_valid,
        "warnings": [w.to_dict() for w in result.warnings],
    }


@router.post("/{schedule_id}/review", response_model=StatusResponse)
def review(
    schedule_id: int,
    db: Session = Depends(get_db),
    actor: TokenData = Depends(require_manager_or_admin),
):
    _get_schedule_or_404(db, schedule_id, actor)
    try:
        new_status = submit_for_review(db, schedule_id)
    except (ScheduleNotFoundError, InvalidTransitionError, TransitionGuardError, ScheduleConflictError) as e:
        _raise_http(e)
    return {"schedule_id": schedule_id, "status": new_status.value}


@router.post("/{schedule_id}/publish", response_model=PublishResponse)
def publish(
    schedule_id: int,
    payload: Optional[PublishRequest] = None,
    db: Session = Depends(get_db),
    actor: TokenData = Depends(require_manager_or_admin),
):
    _get_schedule_or_404(db, schedule_id, actor)
    force = bool(payload and payload.force)
    # only admins may override coverage gaps
    if force and not is_admin(actor):
        raise HTTPException(status_code=403, detail="Only admins can force publish")

    try:
        result = publish_schedule(db, schedule_id, force=force)
    except TransitionGuardError as e:
        raise HTTPException(status_code=400, detail={
            "error": e.reason,
            "warnings": [w.to_dict() for w in e.warnings],
            "can_force_publish": is_admin(actor) and bool(e.warnings),
        })
    except (ScheduleNotFoundError, InvalidTransitionError, InvalidScheduleInputError, ScheduleConflictError) as e:
        _raise_http(e)

    return {
        "schedule_id": schedule_id,
        "status": result.status.value,
        "published_at": result.published_at,
        "forced": result.forced,
        "warnings": [w.to_dict() for w in result.warnings],
    }


@router.post("/{schedule_id}/archive", response_model=StatusResponse)
def archive(
    schedule_id: int,
    db: Session = Depends(get_db),
    actor: TokenData = Depends(require_manager_or_admin),
):
    _get_schedule_or_404(db, schedule_id, actor)
    try:
        new_status = archive_schedule(db, schedule_id)
    except (ScheduleNotFoundError, InvalidTransitionError, ScheduleConflictError) as e:
        _raise_http(e)
    return {"schedule_id": schedule_id, "status": new_status.value}
