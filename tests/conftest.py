"""Shared fixtures -- source documents and task/schedule factories."""

import pytest

PLAN_TEXT = (
    "Clinic portal project plan. "
    "Requirements gathering takes 10 days. "
    "The build phase takes 20 days. "
    "User acceptance testing takes 5 days."
)


def citation_for(quote: str, document: str = "plan.md", text: str = PLAN_TEXT) -> dict:
    start = text.find(quote)
    return {
        "documentName": document,
        "provider": "INTERNAL",
        "startChar": start,
        "endChar": start + len(quote),
        "exactQuote": quote,
    }


@pytest.fixture
def documents():
    """The single source document every cited fixture quotes from."""
    return [{"name": "plan.md", "content": PLAN_TEXT}]


@pytest.fixture
def cited_task():
    """Factory for an explicit task whose duration is backed by a real quote."""

    def make(task_id, name, days=10, quote="Requirements gathering takes 10 days"):
        return {
            "id": task_id,
            "name": name,
            "origin": "explicit",
            "confidence": 1.0,
            "duration": {
                "value": days,
                "unit": "days",
                "origin": "explicit",
                "confidence": 1.0,
                "sourceCitations": [citation_for(quote)],
            },
        }

    return make


@pytest.fixture
def inferred_task():
    """Factory for an inferred task whose duration carries a rationale."""

    def make(task_id, name, days=10, confidence=0.8):
        return {
            "id": task_id,
            "name": name,
            "origin": "inferred",
            "confidence": confidence,
            "duration": {
                "value": days,
                "unit": "days",
                "origin": "inferred",
                "confidence": confidence,
                "inferenceRationale": {
                    "method": "industry-standard",
                    "explanation": "Typical for projects of this size",
                },
            },
        }

    return make


@pytest.fixture
def scenario_a_schedule(cited_task, inferred_task):
    """Four tasks, only the first one cited."""
    return {
        "id": "sched-a",
        "projectName": "Clinic Portal",
        "tasks": [
            cited_task("t1", "Requirements gathering"),
            inferred_task("t2", "Build", days=20),
            inferred_task("t3", "Integration", days=8),
            inferred_task("t4", "Launch", days=2),
        ],
    }


@pytest.fixture
def clean_schedule(cited_task):
    """Every task cited, no contradictions, no regulated names."""
    return {
        "id": "sched-clean",
        "projectName": "Clinic Portal",
        "tasks": [
            cited_task("t1", "Requirements gathering"),
            cited_task("t2", "Build", days=20, quote="The build phase takes 20 days"),
            cited_task("t3", "Acceptance testing", days=5, quote="User acceptance testing takes 5 days"),
        ],
        "metadata": {"generator": "fixture", "customKey": "kept"},
    }


@pytest.fixture
def docs_dir(tmp_path):
    """The source document on disk, for the CLI."""
    docs = tmp_path / "docs"
    docs.mkdir()
    (docs / "plan.md").write_text(PLAN_TEXT)
    return docs
