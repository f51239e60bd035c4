from __future__ import annotations

import logging
from datetime import datetime, timezone
from time import perf_counter

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from campus_scheduler.core.config import Settings, get_settings
from campus_scheduler.core.exceptions import (
    ApplyTransactionError,
    ProposalStateError,
    ResourceNotFoundError,
    ScheduleConflictError,
)
from campus_scheduler.core.security import AuthenticatedUser
from campus_scheduler.models.schedule_proposal import ProposalStatus, ScheduleProposal
from campus_scheduler.schemas.schedule import GenerationOptions
from campus_scheduler.scheduling.constraints import find_conflicts
from campus_scheduler.scheduling.engine import PLACEMENT_ORDER, GenerationResult, generate_schedule
from campus_scheduler.scheduling.validator import ValidationResult, validate_prerequisites
from campus_scheduler.services.audit import log_activity
from campus_scheduler.services.conflict_service import ConflictService
from campus_scheduler.services.directory import AcademicDirectory
from campus_scheduler.services.live_schedule import LiveScheduleStore, entry_from_payload
from campus_scheduler.services.scope_lock import ScopeLockRegistry, get_scope_locks

logger = logging.getLogger(__name__)


def _proposal_batch_ids(proposal: ScheduleProposal) -> list[str]:
    batch_ids = (proposal.proposal_metadata or {}).get("batchIds")
    if batch_ids:
        return list(batch_ids)
    return sorted({item["batchId"] for item in proposal.schedule_data or []})


class ProposalManager:
    """Generation runs and the proposal lifecycle (pending -> approved | rejected)."""

    def __init__(
        self,
        db: Session,
        *,
        settings: Settings | None = None,
        locks: ScopeLockRegistry | None = None,
    ) -> None:
        self.db = db
        self.settings = settings or get_settings()
        self.locks = locks or get_scope_locks()
        self.directory = AcademicDirectory(db)
        self.live = LiveScheduleStore(db)

    def validate(self, options: GenerationOptions) -> ValidationResult:
        snapshot = self.directory.load_snapshot(options)
        return validate_prerequisites(snapshot, options.to_scheduling_config())

    def generate(self, options: GenerationOptions, actor: AuthenticatedUser) -> tuple[ScheduleProposal, GenerationResult]:
        started = perf_counter()
        snapshot = self.directory.load_snapshot(options)
        scope_batch_ids = [batch.id for batch in snapshot.batches]
        # Active schedules of batches outside the scope stay live after apply, so they are reserved.
        reserved = self.live.reserved_arena(exclude_batch_ids=scope_batch_ids)
        time_limit = options.timeLimitSeconds or self.settings.generation_time_limit_seconds

        _, result = generate_schedule(
            snapshot,
            options.to_scheduling_config(),
            arena=reserved,
            time_limit_seconds=time_limit,
        )

        proposal = ScheduleProposal(
            session_id=options.sessionId,
            generated_by=actor.id,
            status=ProposalStatus.pending,
            schedule_data=result.schedule_data(),
            proposal_metadata={
                "itemCount": result.stats.scheduled,
                "unscheduledCount": result.stats.unscheduled,
                "unscheduledCourses": result.unscheduled_data(),
                "stats": result.stats.to_dict(),
                "batchIds": scope_batch_ids,
                "selectionMode": options.selectionMode,
                "placementOrder": PLACEMENT_ORDER,
                "runtimeMs": result.runtime_ms,
                "timedOut": result.timed_out,
                "options": options.model_dump(mode="json"),
            },
        )
        self.db.add(proposal)
        self.db.flush()
        log_activity(
            self.db,
            actor=actor,
            action="schedule.proposal.generate",
            entity_type="schedule_proposal",
            entity_id=proposal.id,
            details={
                "session_id": options.sessionId,
                "scheduled": result.stats.scheduled,
                "unscheduled": result.stats.unscheduled,
            },
        )
        self.db.commit()
        self.db.refresh(proposal)

        logger.info(
            "SCHEDULE PROPOSAL CREATED | proposal_id=%s | session_id=%s | scheduled=%s | unscheduled=%s | total=%s | wall_ms=%s",
            proposal.id,
            options.sessionId,
            result.stats.scheduled,
            result.stats.unscheduled,
            result.stats.total,
            int((perf_counter() - started) * 1000),
        )
        return proposal, result

    def list_proposals(self, session_id: str) -> list[ScheduleProposal]:
        return list(
            self.db.execute(
                select(ScheduleProposal)
                .where(ScheduleProposal.session_id == session_id)
                .order_by(ScheduleProposal.created_at.desc(), ScheduleProposal.id)
            ).scalars()
        )

    def get_proposal(self, proposal_id: str) -> ScheduleProposal:
        proposal = self.db.get(ScheduleProposal, proposal_id)
        if proposal is None:
            raise ResourceNotFoundError("Schedule proposal", proposal_id)
        return proposal

    def _ensure_pending(self, proposal: ScheduleProposal, *, operation: str) -> None:
        if proposal.status != ProposalStatus.pending:
            raise ProposalStateError(
                f"Cannot {operation} a proposal that is {proposal.status.value}",
                details={"proposalId": proposal.id, "status": proposal.status.value},
            )

    def _check_apply_conflicts(self, proposal: ScheduleProposal, batch_ids: list[str]) -> None:
        candidates = [entry_from_payload(item) for item in proposal.schedule_data or []]
        internal = find_conflicts(candidates)
        if internal:
            raise ScheduleConflictError(
                "Proposal contains overlapping classes and cannot be applied",
                details={
                    "conflicts": [
                        {"type": kind.value, "day": first.day, "startTime": first.start_time}
                        for kind, first, _ in internal
                    ]
                },
            )
        live = self.live.active_schedules(exclude_batch_ids=batch_ids)
        collisions = ConflictService(live).conflicts_against(candidates)
        if collisions:
            raise ScheduleConflictError(
                "Proposal conflicts with schedules that are already live",
                details={"conflicts": collisions},
            )

    def apply_proposal(self, proposal_id: str, actor: AuthenticatedUser) -> dict:
        proposal = self.get_proposal(proposal_id)
        self._ensure_pending(proposal, operation="apply")
        batch_ids = _proposal_batch_ids(proposal)

        timeout = self.settings.apply_lock_timeout_seconds
        with self.locks.hold(proposal.session_id, batch_ids, timeout_seconds=timeout), self.locks.hold_live_writes(
            timeout_seconds=timeout
        ):
            self.db.refresh(proposal)
            self._ensure_pending(proposal, operation="apply")
            self._check_apply_conflicts(proposal, batch_ids)

            try:
                created = self.live.replace_for_batches(
                    session_id=proposal.session_id,
                    batch_ids=batch_ids,
                    schedule_data=proposal.schedule_data or [],
                    proposal_id=proposal.id,
                )
                # Guarded transition: another worker may have applied it meanwhile.
                flipped = self.db.execute(
                    update(ScheduleProposal)
                    .where(
                        ScheduleProposal.id == proposal.id,
                        ScheduleProposal.status == ProposalStatus.pending,
                    )
                    .values(
                        status=ProposalStatus.approved,
                        reviewed_by=actor.id,
                        reviewed_at=datetime.now(timezone.utc),
                    )
                    .execution_options(synchronize_session=False)
                ).rowcount
                if flipped != 1:
                    self.db.rollback()
                    raise ProposalStateError(
                        "Proposal was changed by another request while applying",
                        details={"proposalId": proposal.id},
                    )
                log_activity(
                    self.db,
                    actor=actor,
                    action="schedule.proposal.apply",
                    entity_type="schedule_proposal",
                    entity_id=proposal.id,
                    details={"session_id": proposal.session_id, "schedules_created": created},
                )
                self.db.commit()
            except SQLAlchemyError as exc:
                self.db.rollback()
                logger.exception(
                    "SCHEDULE PROPOSAL APPLY FAILED | proposal_id=%s | session_id=%s",
                    proposal.id,
                    proposal.session_id,
                )
                raise ApplyTransactionError(
                    "Failed to apply proposal; no schedules were changed",
                    details={"proposalId": proposal.id},
                ) from exc

        self.db.refresh(proposal)
        logger.info(
            "SCHEDULE PROPOSAL APPLIED | proposal_id=%s | session_id=%s | schedules_created=%s | actor_id=%s",
            proposal.id,
            proposal.session_id,
            created,
            actor.id,
        )
        return {
            "success": True,
            "schedulesCreated": created,
            "message": f"Applied proposal with {created} scheduled classes",
        }

    def reject_proposal(self, proposal_id: str, actor: AuthenticatedUser) -> ScheduleProposal:
        proposal = self.get_proposal(proposal_id)
        self._ensure_pending(proposal, operation="reject")
        proposal.status = ProposalStatus.rejected
        proposal.reviewed_by = actor.id
        proposal.reviewed_at = datetime.now(timezone.utc)
        log_activity(
            self.db,
            actor=actor,
            action="schedule.proposal.reject",
            entity_type="schedule_proposal",
            entity_id=proposal.id,
            details={"session_id": proposal.session_id},
        )
        self.db.commit()
        self.db.refresh(proposal)
        return proposal

    def delete_proposal(self, proposal_id: str, actor: AuthenticatedUser) -> None:
        proposal = self.get_proposal(proposal_id)
        if proposal.status == ProposalStatus.approved:
            raise ProposalStateError(
                "Approved proposals are the schedule of record and cannot be deleted",
                details={"proposalId": proposal.id, "status": proposal.status.value},
            )
        log_activity(
            self.db,
            actor=actor,
            action="schedule.proposal.delete",
            entity_type="schedule_proposal",
            entity_id=proposal.id,
            details={"session_id": proposal.session_id, "status": proposal.status.value},
        )
        self.db.delete(proposal)
        self.db.commit()
