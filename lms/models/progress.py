from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from uuid import UUID


class ProgressStatus(StrEnum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class QuizAnswer:
    question_index: int
    selected_option: int | None  # None = left unanswered
    is_correct: bool


@dataclass(frozen=True, slots=True)
class QuizAttempt:
    attempt_number: int
    answers: tuple[QuizAnswer, ...]
    score: int
    passed: bool
    submitted_at: int
    time_spent_minutes: int = 0


@dataclass(frozen=True, slots=True)
class ProgressRecord:
    """Per-learner state for one course.  One record per (user_id, course_id).

    ``version`` increments on every write; repositories refuse an update
    whose base version is no longer the stored one.
    """

    user_id: str
    course_id: UUID
    status: ProgressStatus = ProgressStatus.NOT_STARTED
    progress: int = 0
    video_watch_seconds: float = 0.0
    video_completed: bool = False
    quiz_attempts: tuple[QuizAttempt, ...] = ()
    best_score: int = 0
    quiz_passed: bool = False
    started_at: int | None = None
    completed_at: int | None = None
    last_accessed_at: int | None = None
    version: int = 0

    @property
    def attempt_count(self) -> int:
        return len(self.quiz_attempts)

    @property
    def is_completed(self) -> bool:
        return self.status == ProgressStatus.COMPLETED

    @staticmethod
    def new(*, user_id: str, course_id: UUID) -> ProgressRecord:
        return ProgressRecord(user_id=user_id, course_id=course_id)
