from __future__ import annotations

import sys
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient

# Ensure repo root is on sys.path so `import lms` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from lms.main import app  # noqa: E402
from lms.services import token_service  # noqa: E402
from lms.services.cache import cache_service  # noqa: E402

YOUTUBE_URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"


@pytest.fixture(autouse=True)
def reset_cache() -> None:
    """Clear cache between tests."""
    if hasattr(cache_service, "_store"):
        cache_service._store.clear()  # type: ignore[union-attr]


@pytest.fixture
def client() -> Iterator[TestClient]:
    # The context manager runs the lifespan, which builds fresh repositories.
    with TestClient(app) as c:
        yield c


def mint_token(
    username: str = "test-user",
    roles: list[str] | None = None,
    department: str | None = None,
    name: str = "",
) -> str:
    """Create a valid ES256 JWT for testing."""
    return token_service.create_access_token(
        sub=username, roles=roles, name=name or username, department=department
    )


def auth(token: str | None) -> dict[str, str]:
    if token is None:
        return {}
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def token() -> str:
    """Token with the default employee role."""
    return mint_token()


@pytest.fixture
def compliance_token() -> str:
    return mint_token(username="test-compliance", roles=["compliance"])


@pytest.fixture
def admin_token() -> str:
    return mint_token(username="test-admin", roles=["admin"])


def quiz_payload(**overrides: Any) -> dict[str, Any]:
    """Two questions; the correct answers are [1, 0]."""
    quiz: dict[str, Any] = {
        "questions": [
            {"question": "Two plus two?", "options": ["3", "4", "5"], "correct_option": 1},
            {"question": "Report phishing to?", "options": ["Security", "Nobody"], "correct_option": 0},
        ],
        "passing_score": 70,
        "max_attempts": 3,
        "allow_retakes": True,
        "time_limit_minutes": 10,
    }
    quiz.update(overrides)
    return quiz


def course_payload(**overrides: Any) -> dict[str, Any]:
    body: dict[str, Any] = {
        "title": "Anti-Bribery Basics",
        "description": "What counts as a bribe and how to report one.",
        "category": "Compliance",
        "duration_minutes": 20,
        "content": {"type": "youtube", "youtube_url": YOUTUBE_URL},
        "status": "active",
    }
    body.update(overrides)
    return body


def create_course(client: TestClient, compliance_token: str, **overrides: Any) -> dict:
    """Create a course through the API and return its JSON."""
    resp = client.post(
        "/v1/courses", json=course_payload(**overrides), headers=auth(compliance_token)
    )
    assert resp.status_code == 201, resp.text
    return resp.json()
