from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from uuid import UUID, uuid4


class CourseCategory(StrEnum):
    MANDATORY = "Mandatory"
    SECURITY = "Security"
    COMPLIANCE = "Compliance"
    TECHNICAL = "Technical"
    SOFT_SKILLS = "Soft Skills"
    OTHER = "Other"


class CourseStatus(StrEnum):
    DRAFT = "draft"
    ACTIVE = "active"
    INACTIVE = "inactive"
    ARCHIVED = "archived"


class ContentType(StrEnum):
    VIDEO = "video"
    YOUTUBE = "youtube"
    INTERACTIVE = "interactive"


class MaterialKind(StrEnum):
    PDF = "pdf"
    DOC = "doc"
    LINK = "link"
    OTHER = "other"


# --- Content variants ---


@dataclass(frozen=True, slots=True)
class UploadedVideo:
    filename: str
    url: str
    size_bytes: int | None = None


@dataclass(frozen=True, slots=True)
class YouTubeVideo:
    url: str
    video_id: str


@dataclass(frozen=True, slots=True)
class Interactive:
    pass


CourseContent = UploadedVideo | YouTubeVideo | Interactive


def content_type_of(content: CourseContent) -> ContentType:
    match content:
        case UploadedVideo():
            return ContentType.VIDEO
        case YouTubeVideo():
            return ContentType.YOUTUBE
        case Interactive():
            return ContentType.INTERACTIVE
    raise TypeError(f"unknown course content {content!r}")


# --- Quiz ---


@dataclass(frozen=True, slots=True)
class QuizQuestion:
    question: str
    options: tuple[str, ...]
    correct_option: int
    explanation: str | None = None


@dataclass(frozen=True, slots=True)
class Quiz:
    questions: tuple[QuizQuestion, ...]
    passing_score: int = 70
    max_attempts: int = 3
    allow_retakes: bool = True
    time_limit_minutes: int = 30

    @property
    def question_count(self) -> int:
        return len(self.questions)


# --- Audience ---


@dataclass(frozen=True, slots=True)
class Audience:
    """Who a course is meant for.

    ``everyone`` corresponds to the "all" audience.  Otherwise a learner
    matches through their department or any of their roles.
    """

    everyone: bool = True
    departments: frozenset[str] = frozenset()
    roles: frozenset[str] = frozenset()

    @property
    def label(self) -> str:
        if self.everyone:
            return "all"
        if self.departments and self.roles:
            return "departments+roles"
        return "departments" if self.departments else "roles"


@dataclass(frozen=True, slots=True)
class Material:
    name: str
    url: str
    kind: MaterialKind = MaterialKind.OTHER


@dataclass(frozen=True, slots=True)
class Course:
    id: UUID
    title: str
    description: str
    category: CourseCategory
    duration_minutes: int
    content: CourseContent
    status: CourseStatus = CourseStatus.DRAFT
    mandatory: bool = False
    deadline: int | None = None
    quiz: Quiz | None = None
    audience: Audience = field(default_factory=Audience)
    materials: tuple[Material, ...] = ()
    created_by: str | None = None
    updated_by: str | None = None
    created_at: int = 0
    updated_at: int = 0

    @property
    def content_type(self) -> ContentType:
        return content_type_of(self.content)

    @property
    def has_video_content(self) -> bool:
        return isinstance(self.content, (UploadedVideo, YouTubeVideo))

    @property
    def has_quiz(self) -> bool:
        return self.quiz is not None and self.quiz.question_count > 0

    @property
    def is_active(self) -> bool:
        return self.status == CourseStatus.ACTIVE

    @staticmethod
    def new(
        *,
        title: str,
        description: str,
        category: CourseCategory,
        duration_minutes: int,
        content: CourseContent,
        created_at: int,
        status: CourseStatus = CourseStatus.DRAFT,
        mandatory: bool = False,
        deadline: int | None = None,
        quiz: Quiz | None = None,
        audience: Audience | None = None,
        materials: tuple[Material, ...] = (),
        created_by: str | None = None,
    ) -> Course:
        return Course(
            id=uuid4(),
            title=title,
            description=description,
            category=category,
            duration_minutes=duration_minutes,
            content=content,
            status=status,
            mandatory=mandatory,
            deadline=deadline,
            quiz=quiz,
            audience=audience or Audience(),
            materials=materials,
            created_by=created_by,
            updated_by=created_by,
            created_at=created_at,
            updated_at=created_at,
        )
