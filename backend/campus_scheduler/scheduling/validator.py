from __future__ import annotations

from dataclasses import dataclass, field

from campus_scheduler.scheduling.snapshot import DirectorySnapshot, SchedulingConfig
from campus_scheduler.scheduling.time_grid import minutes_to_time


@dataclass(frozen=True)
class UnassignedCourse:
    batch_id: str
    batch_name: str
    course_id: str
    course_code: str
    course_name: str
    semester: int

    def to_dict(self) -> dict:
        return {
            "batchId": self.batch_id,
            "batchName": self.batch_name,
            "courseId": self.course_id,
            "courseCode": self.course_code,
            "courseName": self.course_name,
            "semester": self.semester,
        }


@dataclass
class ValidationResult:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    unassigned_courses: list[UnassignedCourse] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors and not self.unassigned_courses

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "unassignedCourses": [item.to_dict() for item in self.unassigned_courses],
        }


def _check_time_windows(snapshot: DirectorySnapshot, config: SchedulingConfig, result: ValidationResult) -> None:
    if not config.working_days:
        result.errors.append("No working days left after removing off days; at least one working day is required")
        return

    needed: set[tuple[str, str]] = set()
    shift_by_batch = {batch.id: batch.shift for batch in snapshot.batches}
    for offering in snapshot.offerings:
        needed.add((shift_by_batch.get(offering.batch_id, "day"), offering.course_type))

    for shift, course_type in sorted(needed):
        grid = config.grid_for(shift, course_type)
        if grid.slots_per_day() > 0:
            continue
        window = grid.window
        result.errors.append(
            f"{course_type.title()} classes of {grid.duration} minutes do not fit the {shift} shift "
            f"({minutes_to_time(window.start)}-{minutes_to_time(window.end)}, "
            f"{window.usable_minutes()} usable minutes)"
        )


def validate_prerequisites(snapshot: DirectorySnapshot, config: SchedulingConfig) -> ValidationResult:
    """Check that every (batch, course) pair in scope can be handed to the engine.

    Pure and idempotent: the same snapshot and config always give the same result.
    """
    result = ValidationResult()

    if not snapshot.batches:
        result.errors.append("No active batches found for the selected scope")
        return result

    seen: set[tuple[str, str]] = set()
    for batch in sorted(snapshot.batches, key=lambda item: (item.name, item.id)):
        offerings = sorted(snapshot.offerings_for(batch.id), key=lambda item: (item.code, item.course_id))
        if not offerings:
            result.warnings.append(
                f"Batch {batch.name} has no courses for semester {batch.current_semester} in this session"
            )
            continue
        for offering in offerings:
            key = (batch.id, offering.course_id)
            if key in seen:
                continue
            seen.add(key)
            if snapshot.instructors_for(batch.id, offering.course_id):
                continue
            result.unassigned_courses.append(
                UnassignedCourse(
                    batch_id=batch.id,
                    batch_name=batch.name,
                    course_id=offering.course_id,
                    course_code=offering.code,
                    course_name=offering.name,
                    semester=offering.semester,
                )
            )

    if result.unassigned_courses:
        result.errors.append(
            f"{len(result.unassigned_courses)} course(s) have no instructor assigned; "
            "assign instructors before generating a schedule"
        )

    if not snapshot.classrooms:
        result.errors.append("No active classrooms are available for scheduling")

    _check_time_windows(snapshot, config, result)

    theory = config.duration_for("theory")
    for course_type in ("lab", "project"):
        if config.duration_for(course_type) < theory:
            result.warnings.append(
                f"{course_type.title()} duration ({config.duration_for(course_type)} min) is shorter than "
                f"theory duration ({theory} min)"
            )
    return result
