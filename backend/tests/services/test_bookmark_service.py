"""Tests for the bookmark form and deletion requests."""
import pytest

from services.bookmark_service import BookmarkForm, delete_bookmark
from tests.fakes import USER_ID, FakeBackend, make_bookmark


class TestBookmarkForm:
    """Tests for BookmarkForm."""

    @pytest.mark.parametrize(
        ("title", "url"),
        [
            ("", "https://example.com"),
            ("   ", "https://example.com"),
            ("Example", ""),
            ("Example", "  \t"),
        ],
    )
    async def test__create__blank_field_makes_no_call(
        self, backend: FakeBackend, title: str, url: str,
    ) -> None:
        form = BookmarkForm(backend)

        assert await form.create(USER_ID, title, url) is False
        assert backend.calls == []
        assert (form.title, form.url) == (title, url)

    async def test__create__success_clears_fields(self, backend: FakeBackend) -> None:
        form = BookmarkForm(backend)

        assert await form.create(USER_ID, "Example", "https://example.com") is True

        assert (form.title, form.url) == ("", "")
        _, data = backend.calls[-1]
        assert data.title == "Example"
        assert data.url == "https://example.com"
        assert data.user_id == USER_ID

    async def test__create__trims_values(self, backend: FakeBackend) -> None:
        form = BookmarkForm(backend)

        await form.create(USER_ID, "  Example  ", " https://example.com ")

        _, data = backend.calls[-1]
        assert data.title == "Example"
        assert data.url == "https://example.com"

    async def test__create__backend_error_keeps_fields(self, backend: FakeBackend) -> None:
        backend.fail.add("insert_bookmark")
        form = BookmarkForm(backend)

        assert await form.create(USER_ID, "Example", "https://example.com") is False

        assert (form.title, form.url) == ("Example", "https://example.com")
        assert backend.call_names() == ["insert_bookmark"]
        assert backend.bookmarks == []


class TestDeleteBookmark:
    """Tests for delete_bookmark."""

    async def test__delete_bookmark__sends_request(self, backend: FakeBackend) -> None:
        backend.bookmarks = [make_bookmark(1), make_bookmark(2)]

        assert await delete_bookmark(backend, 1) is True

        assert backend.calls == [("delete_bookmark", 1)]
        assert [b.id for b in backend.bookmarks] == [2]

    async def test__delete_bookmark__failure_is_abandoned(self, backend: FakeBackend) -> None:
        backend.fail.add("delete_bookmark")

        assert await delete_bookmark(backend, 1) is False
        assert backend.call_names() == ["delete_bookmark"]
