"""Unit tests for Fizzy payload models."""

from __future__ import annotations

from datetime import UTC, datetime

from fizzy_orchestrator.orchestrator.fizzy.models import Card, CardFilters


def test_card_accepts_tag_titles_or_objects() -> None:
    card = Card.model_validate(
        {
            "id": "c1",
            "number": 1,
            "title": "t",
            "tags": ["bug", {"id": "t2", "title": "urgent", "color": "red"}],
            "unknown_field": "ignored",
        }
    )

    assert card.tag_titles == ["bug", "urgent"]
    assert card.status == "open"


def test_card_status_follows_closed_flag() -> None:
    card = Card.model_validate({"id": "c1", "number": 1, "title": "t", "closed": True})

    assert card.status == "closed"


def test_updated_before() -> None:
    cutoff = datetime(2025, 6, 1, tzinfo=UTC)
    old = Card.model_validate(
        {"id": "c1", "number": 1, "title": "t", "updated_at": "2025-01-01T00:00:00Z"}
    )
    new = Card.model_validate(
        {"id": "c2", "number": 2, "title": "t", "updated_at": "2025-07-01T00:00:00.000Z"}
    )
    unknown = Card.model_validate({"id": "c3", "number": 3, "title": "t"})

    assert old.updated_before(cutoff)
    assert not new.updated_before(cutoff)
    assert not unknown.updated_before(cutoff)


def test_card_filters_query_params() -> None:
    filters = CardFilters(column_ids=["col-1"], tag_ids=["t1", "t2"], sorted_by="newest")

    assert filters.to_query_params() == [
        ("column_ids[]", "col-1"),
        ("tag_ids[]", "t1"),
        ("tag_ids[]", "t2"),
        ("sorted_by", "newest"),
    ]
