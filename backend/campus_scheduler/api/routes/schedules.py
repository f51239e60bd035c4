import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from campus_scheduler.api.deps import get_current_user, get_db, require_roles
from campus_scheduler.core.security import AuthenticatedUser, UserRole
from campus_scheduler.schemas.schedule import (
    ApplyProposalResponse,
    BatchIdsRequest,
    CheckConflictsRequest,
    CloseSchedulesResponse,
    ConflictCheckResult,
    CourseScheduleOut,
    GenerateScheduleResponse,
    GenerationOptions,
    GenerationStatsOut,
    ReopenSchedulesResponse,
    ScheduleConflictOut,
    ScheduleProposalOut,
    ScheduleStatusSummary,
    SessionRequest,
    ValidationResultOut,
)
from campus_scheduler.services.audit import log_activity
from campus_scheduler.services.conflict_service import ConflictService
from campus_scheduler.services.live_schedule import LiveScheduleStore
from campus_scheduler.services.proposals import ProposalManager

router = APIRouter()
logger = logging.getLogger(__name__)

SCHEDULER_ROLES = (UserRole.admin, UserRole.program_controller)


def _split_ids(raw: str | None) -> list[str] | None:
    if raw is None:
        return None
    return [item.strip() for item in raw.split(",") if item.strip()]


@router.post("/validate", response_model=ValidationResultOut)
def validate_schedule(
    payload: GenerationOptions,
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ValidationResultOut:
    result = ProposalManager(db).validate(payload)
    logger.info(
        "SCHEDULE VALIDATION | user_id=%s | session_id=%s | valid=%s | errors=%s | unassigned=%s",
        current_user.id,
        payload.sessionId,
        result.valid,
        len(result.errors),
        len(result.unassigned_courses),
    )
    return ValidationResultOut.model_validate(result.to_dict())


@router.post("/generate", response_model=GenerateScheduleResponse, status_code=status.HTTP_201_CREATED)
def generate_schedule(
    payload: GenerationOptions,
    current_user: AuthenticatedUser = Depends(require_roles(*SCHEDULER_ROLES)),
    db: Session = Depends(get_db),
) -> GenerateScheduleResponse:
    logger.info(
        "SCHEDULE GENERATION START | user_id=%s | session_id=%s | mode=%s | department_id=%s | batches=%s",
        current_user.id,
        payload.sessionId,
        payload.selectionMode,
        payload.departmentId,
        len(payload.batchIds or []),
    )
    proposal, result = ProposalManager(db).generate(payload, current_user)
    stats = GenerationStatsOut(
        **result.stats.to_dict(),
        unscheduledCourses=result.unscheduled_data(),
    )
    logger.info(
        "SCHEDULE GENERATION COMPLETE | proposal_id=%s | session_id=%s | scheduled=%s | unscheduled=%s | runtime_ms=%s",
        proposal.id,
        payload.sessionId,
        stats.scheduled,
        stats.unscheduled,
        result.runtime_ms,
    )
    return GenerateScheduleResponse(proposal=ScheduleProposalOut.model_validate(proposal), stats=stats)


@router.post("/check-conflicts", response_model=ConflictCheckResult)
def check_conflicts(
    payload: CheckConflictsRequest,
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ConflictCheckResult:
    schedules = LiveScheduleStore(db).active_schedules(
        batch_ids=payload.batchIds or None,
        session_id=payload.sessionId,
    )
    conflicts = [
        ScheduleConflictOut(
            type=item["type"],
            day=item["day"],
            schedule1=CourseScheduleOut.model_validate(item["schedule1"]),
            schedule2=CourseScheduleOut.model_validate(item["schedule2"]),
        )
        for item in ConflictService(schedules).detect_conflicts()
    ]
    return ConflictCheckResult(hasConflicts=bool(conflicts), count=len(conflicts), conflicts=conflicts)


@router.get("/proposals", response_model=list[ScheduleProposalOut])
def list_proposals(
    session_id: str = Query(alias="sessionId", min_length=1, max_length=36),
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[ScheduleProposalOut]:
    return [ScheduleProposalOut.model_validate(item) for item in ProposalManager(db).list_proposals(session_id)]


@router.get("/proposals/{proposal_id}", response_model=ScheduleProposalOut)
def get_proposal(
    proposal_id: str,
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ScheduleProposalOut:
    return ScheduleProposalOut.model_validate(ProposalManager(db).get_proposal(proposal_id))


@router.post("/proposals/{proposal_id}/apply", response_model=ApplyProposalResponse)
def apply_proposal(
    proposal_id: str,
    current_user: AuthenticatedUser = Depends(require_roles(*SCHEDULER_ROLES)),
    db: Session = Depends(get_db),
) -> ApplyProposalResponse:
    return ApplyProposalResponse(**ProposalManager(db).apply_proposal(proposal_id, current_user))


@router.post("/proposals/{proposal_id}/reject", response_model=ScheduleProposalOut)
def reject_proposal(
    proposal_id: str,
    current_user: AuthenticatedUser = Depends(require_roles(*SCHEDULER_ROLES)),
    db: Session = Depends(get_db),
) -> ScheduleProposalOut:
    return ScheduleProposalOut.model_validate(ProposalManager(db).reject_proposal(proposal_id, current_user))


@router.delete("/proposals/{proposal_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_proposal(
    proposal_id: str,
    current_user: AuthenticatedUser = Depends(require_roles(*SCHEDULER_ROLES)),
    db: Session = Depends(get_db),
) -> None:
    ProposalManager(db).delete_proposal(proposal_id, current_user)


@router.post("/close-batches", response_model=CloseSchedulesResponse)
def close_batches(
    payload: BatchIdsRequest,
    current_user: AuthenticatedUser = Depends(require_roles(*SCHEDULER_ROLES)),
    db: Session = Depends(get_db),
) -> CloseSchedulesResponse:
    closed = LiveScheduleStore(db).close_for_batches(payload.batchIds)
    log_activity(
        db,
        actor=current_user,
        action="schedule.live.close_batches",
        entity_type="course_schedule",
        details={"batch_ids": payload.batchIds, "closed": closed},
    )
    db.commit()
    logger.info("LIVE SCHEDULE CLOSED | user_id=%s | batches=%s | closed=%s", current_user.id, len(payload.batchIds), closed)
    return CloseSchedulesResponse(success=True, closedCount=closed, message=f"Closed {closed} schedule(s)")


@router.post("/close-session", response_model=CloseSchedulesResponse)
def close_session(
    payload: SessionRequest,
    current_user: AuthenticatedUser = Depends(require_roles(*SCHEDULER_ROLES)),
    db: Session = Depends(get_db),
) -> CloseSchedulesResponse:
    closed = LiveScheduleStore(db).close_for_session(payload.sessionId)
    log_activity(
        db,
        actor=current_user,
        action="schedule.live.close_session",
        entity_type="academic_session",
        entity_id=payload.sessionId,
        details={"closed": closed},
    )
    db.commit()
    logger.info("LIVE SCHEDULE CLOSED | user_id=%s | session_id=%s | closed=%s", current_user.id, payload.sessionId, closed)
    return CloseSchedulesResponse(success=True, closedCount=closed, message=f"Closed {closed} schedule(s)")


@router.post("/reopen-batches", response_model=ReopenSchedulesResponse)
def reopen_batches(
    payload: BatchIdsRequest,
    current_user: AuthenticatedUser = Depends(require_roles(*SCHEDULER_ROLES)),
    db: Session = Depends(get_db),
) -> ReopenSchedulesResponse:
    reopened = LiveScheduleStore(db).reopen_for_batches(payload.batchIds)
    log_activity(
        db,
        actor=current_user,
        action="schedule.live.reopen_batches",
        entity_type="course_schedule",
        details={"batch_ids": payload.batchIds, "reopened": reopened},
    )
    db.commit()
    logger.info(
        "LIVE SCHEDULE REOPENED | user_id=%s | batches=%s | reopened=%s",
        current_user.id,
        len(payload.batchIds),
        reopened,
    )
    return ReopenSchedulesResponse(success=True, reopenedCount=reopened, message=f"Reopened {reopened} schedule(s)")


@router.get("/status-summary", response_model=ScheduleStatusSummary)
def status_summary(
    batch_ids: str | None = Query(default=None, alias="batchIds"),
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ScheduleStatusSummary:
    return ScheduleStatusSummary(**LiveScheduleStore(db).status_summary(_split_ids(batch_ids)))


@router.get("/active", response_model=list[CourseScheduleOut])
def active_schedules(
    batch_ids: str | None = Query(default=None, alias="batchIds"),
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[CourseScheduleOut]:
    records = LiveScheduleStore(db).active_schedules(batch_ids=_split_ids(batch_ids))
    return [CourseScheduleOut.model_validate(item) for item in records]
