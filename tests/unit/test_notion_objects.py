"""Unit tests for Notion payload helpers."""

from datetime import date

import pytest

from year_builder.utils.notion_objects import (
    date_value,
    extract_page_id,
    normalize_id,
    object_title,
    parent_page_id,
    relation_value,
    row_date_range,
    row_relation_ids,
    row_title,
    title_value,
    year_from_title,
)

PAGE_ID = "2c8b9535d4fd80d5a7c1f0e2b3a4c5d6"


@pytest.mark.unit
class TestExtractPageId:
    """Tests for extract_page_id function."""

    @pytest.mark.parametrize(
        "reference",
        [
            PAGE_ID,
            PAGE_ID.upper(),
            "2c8b9535-d4fd-80d5-a7c1-f0e2b3a4c5d6",
            f"https://www.notion.so/myspace/2026-{PAGE_ID}",
            f"https://www.notion.so/myspace/2026-{PAGE_ID}?pvs=4",
            f"https://www.notion.so/{PAGE_ID}",
            f"  https://notion.so/2026-{PAGE_ID}  ",
        ],
    )
    def test_accepted_forms(self, reference: str) -> None:
        assert extract_page_id(reference) == PAGE_ID

    @pytest.mark.parametrize("reference", ["", "2026", "https://www.notion.so/myspace/2026"])
    def test_rejected(self, reference: str) -> None:
        with pytest.raises(ValueError, match="Invalid Notion URL or page ID"):
            extract_page_id(reference)


@pytest.mark.unit
class TestReaders:
    def test_year_from_title(self) -> None:
        assert year_from_title("2026") == 2026
        assert year_from_title("My 2027 plan") == 2027
        with pytest.raises(ValueError, match="Could not extract year"):
            year_from_title("Next year")

    def test_normalize_id(self) -> None:
        assert normalize_id("AB-cd") == "abcd"
        assert normalize_id(None) == ""

    def test_object_title(self) -> None:
        database = {"object": "database", "title": [{"plain_text": "2026 "}, {"plain_text": "Weeks"}]}
        page = {"object": "page", "properties": {"title": {"type": "title", "title": [{"text": {"content": "2026"}}]}}}
        assert object_title(database) == "2026 Weeks"
        assert object_title(page) == "2026"
        assert object_title({"object": "page", "properties": {}}) == ""

    def test_parent_page_id(self) -> None:
        assert parent_page_id({"parent": {"type": "page_id", "page_id": "p"}}) == "p"
        assert parent_page_id({"parent": {"type": "workspace", "workspace": True}}) is None

    def test_row_values(self) -> None:
        row = {
            "properties": {
                "Week": {"type": "title", "title": [{"plain_text": "Week 01"}]},
                "🗓️ 2026 Months": {"type": "relation", "relation": [{"id": "m1"}, {"id": "m2"}]},
                "Dates": {"type": "date", "date": {"start": "2025-12-28", "end": "2026-01-03"}},
                "Day": {"type": "date", "date": {"start": "2026-01-05T09:00:00.000Z", "end": None}},
            }
        }
        assert row_title(row, "Week") == "Week 01"
        assert row_title(row, "Missing") == ""
        assert row_relation_ids(row, "🗓️ 2026 Months") == ["m1", "m2"]
        assert row_relation_ids(row, "Week") == []
        assert row_date_range(row, "Dates") == (date(2025, 12, 28), date(2026, 1, 3))
        assert row_date_range(row, "Day") == (date(2026, 1, 5), date(2026, 1, 5))
        assert row_date_range(row, "Missing") is None


@pytest.mark.unit
class TestBuilders:
    def test_title_value(self) -> None:
        assert title_value("Week 01") == {"title": [{"type": "text", "text": {"content": "Week 01"}}]}

    def test_relation_value(self) -> None:
        assert relation_value(["a", "b"]) == {"relation": [{"id": "a"}, {"id": "b"}]}

    def test_date_value(self) -> None:
        assert date_value(date(2026, 1, 4), date(2026, 1, 10)) == {
            "date": {"start": "2026-01-04", "end": "2026-01-10"}
        }
        assert date_value(date(2026, 1, 4)) == {"date": {"start": "2026-01-04"}}
