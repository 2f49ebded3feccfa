"""
Notes API — Note Service Tests
===============================

What:  Tests for NoteService against the relational repository on SQLite.
Why:   The notes access layer carries the ownership, merge-patch, pagination
       and search rules; running them on a real database checks the queries
       and not just the calls.

What we test:
    ✅ Create → Get round trip with defaults
    ✅ Foreign notes are indistinguishable from missing ones
    ✅ TogglePin, SetTags, SetVisibility, Delete
    ✅ Merge-patch keeps omitted fields and applies falsy ones
    ✅ Pagination partition, bounds and totalPages
    ✅ Case-insensitive, literal text search, including non-ASCII text
    ✅ Sort order of the owner, public and global listings
    ✅ Public and global listings
    ✅ Indexing and embed-on-write with a fake embedder
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import delete, func, select, update

from notesapi.config import settings
from notesapi.exceptions import NotFoundError, UnauthorizedError, ValidationError
from notesapi.models.note import Note
from notesapi.models.user import User
from notesapi.schemas.note import NoteCreate, NoteUpdate
from notesapi.services.note_service import NoteService, normalize_pagination


def new_note(title="Title", content="Body", **kwargs) -> NoteCreate:
    return NoteCreate(title=title, content=content, **kwargs)


BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


async def set_created(session, note_id: str, minutes: int) -> None:
    """Pin a note's creation time so ordering does not depend on the clock."""
    await session.execute(
        update(Note)
        .where(Note.id == uuid.UUID(note_id))
        .values(created_at=BASE_TIME + timedelta(minutes=minutes))
    )


class TestNormalizePagination:

    def test_defaults(self):
        assert normalize_pagination(None, None) == (1, 10)

    def test_zero_limit_means_default(self):
        assert normalize_pagination(1, 0) == (1, 10)

    def test_limit_clamped_to_100(self):
        assert normalize_pagination(1, 500) == (1, 100)

    def test_negative_limit_clamped_to_1(self):
        assert normalize_pagination(1, -5) == (1, 1)

    @pytest.mark.parametrize("page", [0, -1, -100])
    def test_page_floored_at_1(self, page):
        assert normalize_pagination(page, 10) == (1, 10)


class TestCreateAndGet:

    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_create_then_get_returns_defaults(self, note_repo, owner):
        created = await self.service.create(note_repo, owner, new_note("Groceries", "Milk"))
        fetched = await self.service.get(note_repo, owner, created.id)

        assert fetched.id == created.id
        assert fetched.title == "Groceries"
        assert fetched.content == "Milk"
        assert fetched.tags == []
        assert fetched.is_pinned is False
        assert fetched.is_public is False
        assert fetched.owner_id == owner
        assert fetched.created_at is not None

    @pytest.mark.asyncio
    async def test_ids_are_unique(self, note_repo, owner):
        ids = {
            (await self.service.create(note_repo, owner, new_note(f"n{i}"))).id
            for i in range(5)
        }
        assert len(ids) == 5

    @pytest.mark.asyncio
    @pytest.mark.parametrize("title,content", [(None, "x"), ("", "x"), ("  ", "x"), ("x", None), ("x", "")])
    async def test_create_requires_title_and_content(self, note_repo, owner, title, content):
        with pytest.raises(ValidationError):
            await self.service.create(note_repo, owner, NoteCreate(title=title, content=content))

    @pytest.mark.asyncio
    async def test_create_requires_owner(self, note_repo):
        with pytest.raises(ValidationError) as exc_info:
            await self.service.create(note_repo, None, new_note())
        assert exc_info.value.field == "ownerId"

    @pytest.mark.asyncio
    async def test_create_with_unknown_owner_is_rejected(self, note_repo):
        with pytest.raises(ValidationError):
            await self.service.create(
                note_repo, "00000000-0000-0000-0000-000000000000", new_note()
            )

    @pytest.mark.asyncio
    async def test_get_by_other_owner_is_not_found(self, note_repo, owner, other_owner):
        created = await self.service.create(note_repo, owner, new_note())
        with pytest.raises(NotFoundError) as exc_info:
            await self.service.get(note_repo, other_owner, created.id)
        assert exc_info.value.message == "Note not found"

    @pytest.mark.asyncio
    async def test_get_missing_and_malformed_ids(self, note_repo, owner):
        with pytest.raises(NotFoundError):
            await self.service.get(note_repo, owner, "00000000-0000-0000-0000-000000000001")
        with pytest.raises(NotFoundError):
            await self.service.get(note_repo, owner, "not-an-id")

    @pytest.mark.asyncio
    async def test_get_without_identity_is_unauthorized(self, note_repo):
        with pytest.raises(UnauthorizedError):
            await self.service.get(note_repo, None, "anything")


class TestUpdate:

    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_omitted_fields_are_untouched(self, note_repo, owner):
        created = await self.service.create(
            note_repo, owner, new_note("Old", "Body", tags=["x"], is_pinned=True)
        )
        updated = await self.service.update(
            note_repo, owner, created.id, NoteUpdate.model_validate({"title": "New"})
        )
        assert updated.title == "New"
        assert updated.content == "Body"
        assert updated.tags == ["x"]
        assert updated.is_pinned is True

    @pytest.mark.asyncio
    async def test_explicit_false_and_empty_tags_are_applied(self, note_repo, owner):
        created = await self.service.create(
            note_repo, owner, new_note(tags=["x"], is_pinned=True)
        )
        updated = await self.service.update(
            note_repo,
            owner,
            created.id,
            NoteUpdate.model_validate({"isPinned": False, "tags": []}),
        )
        assert updated.is_pinned is False
        assert updated.tags == []

    @pytest.mark.asyncio
    async def test_empty_patch_is_rejected(self, note_repo, owner):
        created = await self.service.create(note_repo, owner, new_note())
        with pytest.raises(ValidationError, match="No changes provided"):
            await self.service.update(note_repo, owner, created.id, NoteUpdate())

    @pytest.mark.asyncio
    async def test_blank_title_is_rejected(self, note_repo, owner):
        created = await self.service.create(note_repo, owner, new_note())
        with pytest.raises(ValidationError):
            await self.service.update(
                note_repo, owner, created.id, NoteUpdate.model_validate({"title": ""})
            )

    @pytest.mark.asyncio
    async def test_update_foreign_note_is_not_found(self, note_repo, owner, other_owner):
        created = await self.service.create(note_repo, owner, new_note("Mine"))
        with pytest.raises(NotFoundError):
            await self.service.update(
                note_repo, other_owner, created.id, NoteUpdate.model_validate({"title": "Theirs"})
            )
        assert (await self.service.get(note_repo, owner, created.id)).title == "Mine"


class TestPinTagsVisibilityDelete:

    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_toggle_pin_twice_restores_state(self, note_repo, owner):
        created = await self.service.create(note_repo, owner, new_note())
        first = await self.service.toggle_pin(note_repo, owner, created.id)
        second = await self.service.toggle_pin(note_repo, owner, created.id)
        assert first.is_pinned is True
        assert second.is_pinned is False

    @pytest.mark.asyncio
    async def test_toggle_pin_foreign_note_is_not_found(self, note_repo, owner, other_owner):
        created = await self.service.create(note_repo, owner, new_note())
        with pytest.raises(NotFoundError):
            await self.service.toggle_pin(note_repo, other_owner, created.id)

    @pytest.mark.asyncio
    async def test_set_tags_replaces_in_order(self, note_repo, owner):
        created = await self.service.create(note_repo, owner, new_note(tags=["old"]))
        await self.service.set_tags(note_repo, owner, created.id, ["a", "b"])
        fetched = await self.service.get(note_repo, owner, created.id)
        assert fetched.tags == ["a", "b"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("tags", ["a,b", None, [1, 2], {"a": 1}])
    async def test_set_tags_rejects_non_lists(self, note_repo, owner, tags):
        created = await self.service.create(note_repo, owner, new_note())
        with pytest.raises(ValidationError):
            await self.service.set_tags(note_repo, owner, created.id, tags)

    @pytest.mark.asyncio
    async def test_set_visibility(self, note_repo, owner):
        created = await self.service.create(note_repo, owner, new_note())
        updated = await self.service.set_visibility(note_repo, owner, created.id, True)
        assert updated.is_public is True

    @pytest.mark.asyncio
    async def test_delete_then_get_is_not_found(self, note_repo, owner):
        created = await self.service.create(note_repo, owner, new_note())
        await self.service.delete(note_repo, owner, created.id)
        with pytest.raises(NotFoundError):
            await self.service.get(note_repo, owner, created.id)

    @pytest.mark.asyncio
    async def test_delete_foreign_note_is_not_found_and_keeps_it(self, note_repo, owner, other_owner):
        created = await self.service.create(note_repo, owner, new_note())
        with pytest.raises(NotFoundError):
            await self.service.delete(note_repo, other_owner, created.id)
        assert (await self.service.get(note_repo, owner, created.id)).id == created.id

    @pytest.mark.asyncio
    async def test_removing_owner_removes_their_notes(self, session, note_repo, owner, other_owner):
        await self.service.create(note_repo, owner, new_note("mine"))
        kept = await self.service.create(note_repo, other_owner, new_note("theirs"))

        await session.execute(delete(User).where(User.id == uuid.UUID(owner)))

        remaining = (await session.execute(select(Note.id))).scalars().all()
        assert [str(i) for i in remaining] == [kept.id]


class TestListings:

    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_pages_partition_all_notes(self, note_repo, owner):
        for i in range(25):
            await self.service.create(note_repo, owner, new_note(f"Note {i}"))

        pages = [await self.service.list_own(note_repo, owner, page=p, limit=10) for p in (1, 2, 3)]

        assert [len(p.items) for p in pages] == [10, 10, 5]
        assert all(p.total == 25 and p.total_pages == 3 for p in pages)
        ids = [n.id for p in pages for n in p.items]
        assert len(ids) == len(set(ids)) == 25

    @pytest.mark.asyncio
    async def test_bounds_are_applied(self, note_repo, owner):
        await self.service.create(note_repo, owner, new_note())
        result = await self.service.list_own(note_repo, owner, page=0, limit=500)
        assert result.page == 1
        assert result.limit == 100

    @pytest.mark.asyncio
    async def test_empty_listing_has_one_page(self, note_repo, owner):
        result = await self.service.list_own(note_repo, owner)
        assert result.items == []
        assert result.total == 0
        assert result.total_pages == 1

    @pytest.mark.asyncio
    async def test_pinned_notes_come_first(self, note_repo, owner):
        await self.service.create(note_repo, owner, new_note("plain"))
        pinned = await self.service.create(note_repo, owner, new_note("pinned", is_pinned=True))
        await self.service.create(note_repo, owner, new_note("plain again"))

        result = await self.service.list_own(note_repo, owner)
        assert result.items[0].id == pinned.id

    @pytest.mark.asyncio
    async def test_listing_is_owner_scoped(self, note_repo, owner, other_owner):
        await self.service.create(note_repo, owner, new_note("mine"))
        await self.service.create(note_repo, other_owner, new_note("theirs"))

        result = await self.service.list_own(note_repo, owner)
        assert [n.title for n in result.items] == ["mine"]

    @pytest.mark.asyncio
    async def test_query_is_case_insensitive(self, note_repo, owner):
        await self.service.create(note_repo, owner, new_note("Grocery List", "eggs"))

        found = await self.service.list_own(note_repo, owner, query="grocery")
        missing = await self.service.list_own(note_repo, owner, query="unrelated")

        assert [n.title for n in found.items] == ["Grocery List"]
        assert missing.items == []

    @pytest.mark.asyncio
    async def test_query_matches_content_and_tags(self, note_repo, owner):
        await self.service.create(note_repo, owner, new_note("a", "Buy MILK"))
        await self.service.create(note_repo, owner, new_note("b", "c", tags=["Errands"]))

        assert (await self.service.list_own(note_repo, owner, query="milk")).total == 1
        assert (await self.service.list_own(note_repo, owner, query="errand")).total == 1

    @pytest.mark.asyncio
    async def test_query_wildcards_are_literal(self, note_repo, owner):
        await self.service.create(note_repo, owner, new_note("100% done", "x"))
        await self.service.create(note_repo, owner, new_note("1000 done", "x"))

        result = await self.service.list_own(note_repo, owner, query="100%")
        assert [n.title for n in result.items] == ["100% done"]

    @pytest.mark.asyncio
    async def test_query_matches_non_ascii_tags(self, note_repo, owner):
        await self.service.create(note_repo, owner, new_note("a", "b", tags=["café"]))

        assert (await self.service.list_own(note_repo, owner, query="café")).total == 1
        assert (await self.service.list_own(note_repo, owner, query="CAFÉ")).total == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["äpfel", "ÄPFEL", "Äpfel"])
    async def test_query_folds_non_ascii_case(self, note_repo, owner, query):
        await self.service.create(note_repo, owner, new_note("Äpfel kaufen", "x"))

        result = await self.service.list_own(note_repo, owner, query=query)
        assert [n.title for n in result.items] == ["Äpfel kaufen"]

    @pytest.mark.asyncio
    async def test_search_requires_query(self, note_repo, owner):
        with pytest.raises(ValidationError):
            await self.service.search(note_repo, owner, "   ")

    @pytest.mark.asyncio
    async def test_search_returns_all_matches(self, note_repo, owner):
        for i in range(12):
            await self.service.create(note_repo, owner, new_note(f"Trip {i}"))
        await self.service.create(note_repo, owner, new_note("Other"))

        results = await self.service.search(note_repo, owner, "trip")
        assert len(results) == 12

    @pytest.mark.asyncio
    async def test_public_listing_filters_private_notes(self, note_repo, owner):
        public = await self.service.create(note_repo, owner, new_note("shared", is_public=True))
        await self.service.create(note_repo, owner, new_note("private"))

        result = await self.service.list_public(note_repo, owner)
        assert [n.id for n in result.items] == [public.id]
        assert result.total == 1

    @pytest.mark.asyncio
    async def test_public_listing_rejects_malformed_user_id(self, note_repo):
        with pytest.raises(ValidationError, match="Invalid user ID"):
            await self.service.list_public(note_repo, "not-a-uuid")

    @pytest.mark.asyncio
    async def test_list_all_includes_authors(self, note_repo, owner, other_owner):
        await self.service.create(note_repo, owner, new_note("one"))
        await self.service.create(note_repo, other_owner, new_note("two"))

        notes = await self.service.list_all(note_repo)
        authors = {n.title: n.author.name for n in notes}
        assert authors == {"one": "Ada Lovelace", "two": "Grace Hopper"}



class TestOrdering:

    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_own_listing_is_newest_first(self, session, note_repo, owner):
        for title, minutes in [("old", 0), ("new", 10), ("mid", 5)]:
            note = await self.service.create(note_repo, owner, new_note(title))
            await set_created(session, note.id, minutes)

        result = await self.service.list_own(note_repo, owner)
        assert [n.title for n in result.items] == ["new", "mid", "old"]

    @pytest.mark.asyncio
    async def test_own_listing_puts_old_pinned_before_new_unpinned(self, session, note_repo, owner):
        pinned = await self.service.create(note_repo, owner, new_note("pinned", is_pinned=True))
        newer = await self.service.create(note_repo, owner, new_note("newer"))
        await set_created(session, pinned.id, 0)
        await set_created(session, newer.id, 10)

        result = await self.service.list_own(note_repo, owner)
        assert [n.id for n in result.items] == [pinned.id, newer.id]

    @pytest.mark.asyncio
    async def test_public_listing_ignores_pin(self, session, note_repo, owner):
        pinned = await self.service.create(
            note_repo, owner, new_note("pinned", is_pinned=True, is_public=True)
        )
        newer = await self.service.create(note_repo, owner, new_note("newer", is_public=True))
        await set_created(session, pinned.id, 0)
        await set_created(session, newer.id, 10)

        result = await self.service.list_public(note_repo, owner)
        assert [n.id for n in result.items] == [newer.id, pinned.id]

    @pytest.mark.asyncio
    async def test_global_listing_is_newest_first_then_pinned(
        self, session, note_repo, owner, other_owner
    ):
        oldest = await self.service.create(note_repo, owner, new_note("oldest", is_pinned=True))
        plain = await self.service.create(note_repo, owner, new_note("plain"))
        pinned = await self.service.create(note_repo, other_owner, new_note("pinned", is_pinned=True))
        await set_created(session, oldest.id, 0)
        await set_created(session, plain.id, 10)
        await set_created(session, pinned.id, 10)

        notes = await self.service.list_all(note_repo)
        assert [n.id for n in notes] == [pinned.id, plain.id, oldest.id]


class TestIndexing:

    @pytest.mark.asyncio
    async def test_index_note_stores_embedding(self, note_repo, owner, fake_embedder):
        service = NoteService(embedder=fake_embedder)
        created = await service.create(note_repo, owner, new_note("Cats", "Whiskers"))

        await service.index_note(note_repo, owner, created.id)

        matches = await note_repo.vector_search(owner, [1.0, 0.0], 5)
        assert [n.id for n, _ in matches] == [created.id]
        assert fake_embedder.calls == ["Cats\n\nWhiskers"]

    @pytest.mark.asyncio
    async def test_index_foreign_note_is_not_found(self, note_repo, owner, other_owner, fake_embedder):
        service = NoteService(embedder=fake_embedder)
        created = await service.create(note_repo, owner, new_note())
        with pytest.raises(NotFoundError):
            await service.index_note(note_repo, other_owner, created.id)
        assert fake_embedder.calls == []

    @pytest.mark.asyncio
    async def test_embed_on_write(self, note_repo, owner, fake_embedder, monkeypatch):
        monkeypatch.setattr(settings, "embed_on_write", True)
        service = NoteService(embedder=fake_embedder)

        await service.create(note_repo, owner, new_note("Cat facts", "Purring"))

        assert fake_embedder.calls == ["Cat facts\n\nPurring"]
        assert len(await note_repo.vector_search(owner, [1.0, 0.0], 5)) == 1
