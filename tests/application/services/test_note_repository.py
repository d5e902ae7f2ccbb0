"""Tests for NoteRepository."""

from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from swiftnote.application.services.note_repository import NoteRepository
from swiftnote.domain.entities.note import NotePatch
from swiftnote.domain.exceptions import NotFoundError, StoreError, ValidationError
from swiftnote.domain.repositories.note_store import NoteFilter, NoteState
from swiftnote.infrastructure.persistence.exceptions import DatabaseError
from swiftnote.infrastructure.persistence.note_store import SQLiteNoteStore


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create in-memory SQLite async engine."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def store(engine: AsyncEngine) -> SQLiteNoteStore:
    """Create SQLite note store."""
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    @asynccontextmanager
    async def get_session() -> AsyncGenerator[AsyncSession, None]:
        async with factory() as session:
            yield session

    return SQLiteNoteStore(get_session)


class FakeClock:
    """Clock that advances one minute per call."""

    def __init__(self) -> None:
        self.now = datetime.now(timezone.utc) + timedelta(hours=1)

    def __call__(self) -> datetime:
        self.now += timedelta(minutes=1)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def repository(store: SQLiteNoteStore, clock: FakeClock) -> NoteRepository:
    """Create test repository."""
    return NoteRepository(store, clock=clock)


@pytest.fixture
def mock_store() -> Mock:
    """Create a mock NoteStore."""
    store = Mock()
    store.select = AsyncMock(return_value=[])
    store.insert = AsyncMock()
    store.update_where = AsyncMock(return_value=[])
    store.delete_where = AsyncMock(return_value=0)
    return store


class TestCreate:
    """create method tests."""

    async def test_create_and_get(self, repository: NoteRepository) -> None:
        """Test that a created note can be fetched unchanged."""
        created = await repository.create("Groceries", "Milk", ["home", "errands"])

        found = await repository.get(created.id)

        assert found == created
        assert found.title == "Groceries"
        assert found.body == "Milk"
        assert found.tags == ["home", "errands"]
        assert found.deleted_at is None
        assert found.created_at == found.updated_at

    async def test_trims_title_and_body(self, repository: NoteRepository) -> None:
        note = await repository.create("  Title  ", "  body \n")

        assert note.title == "Title"
        assert note.body == "body"

    async def test_without_tags(self, repository: NoteRepository) -> None:
        note = await repository.create("Title", tags=[])

        assert note.tags == []
        assert note.body == ""

    async def test_blank_title_is_rejected(self, repository: NoteRepository) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await repository.create("   ", "body")
        assert exc_info.value.field == "title"

    async def test_blank_title_does_not_reach_store(self, mock_store: Mock) -> None:
        repository = NoteRepository(mock_store)

        with pytest.raises(ValidationError):
            await repository.create("")

        mock_store.insert.assert_not_called()

    async def test_assigns_distinct_ids(self, repository: NoteRepository) -> None:
        first = await repository.create("One")
        second = await repository.create("Two")

        assert first.id != second.id


class TestGet:
    """get method tests."""

    async def test_unknown_id(self, repository: NoteRepository) -> None:
        note_id = str(uuid4())
        with pytest.raises(NotFoundError) as exc_info:
            await repository.get(note_id)
        assert exc_info.value.note_id == note_id

    @pytest.mark.parametrize("note_id", ["", "   "])
    async def test_empty_id(self, repository: NoteRepository, note_id: str) -> None:
        with pytest.raises(ValidationError, match="Note ID is required"):
            await repository.get(note_id)

    async def test_malformed_id(self, mock_store: Mock) -> None:
        repository = NoteRepository(mock_store)

        with pytest.raises(ValidationError, match="Malformed note ID"):
            await repository.get("not-a-uuid")

        mock_store.select.assert_not_called()

    @pytest.mark.parametrize(
        "id_format",
        [
            lambda value: value.upper(),
            lambda value: "{" + value + "}",
            lambda value: "urn:uuid:" + value,
            lambda value: value.replace("-", ""),
        ],
    )
    async def test_alternate_id_forms(
        self, repository: NoteRepository, id_format: Callable[[str], str]
    ) -> None:
        """Test that any UUID spelling finds the stored note."""
        note = await repository.create("Title")

        found = await repository.get(id_format(note.id))

        assert found.id == note.id


class TestListNotes:
    """list_notes method tests."""

    async def test_empty(self, repository: NoteRepository) -> None:
        assert await repository.list_notes() == []

    async def test_most_recently_updated_first(
        self, repository: NoteRepository
    ) -> None:
        first = await repository.create("First")
        second = await repository.create("Second")
        await repository.update(first.id, NotePatch(body="edited"))

        notes = await repository.list_notes()

        assert [note.id for note in notes] == [first.id, second.id]

    async def test_excludes_deleted(self, repository: NoteRepository) -> None:
        kept = await repository.create("Kept")
        gone = await repository.create("Gone")
        await repository.soft_delete(gone.id)

        notes = await repository.list_notes()

        assert [note.id for note in notes] == [kept.id]


class TestUpdate:
    """update method tests."""

    async def test_updates_fields_and_advances_updated_at(
        self, repository: NoteRepository
    ) -> None:
        note = await repository.create("Old", "old body", ["a"])

        updated = await repository.update(
            note.id, NotePatch(title=" New ", body="new body", tags=["b", "c"])
        )

        assert updated.title == "New"
        assert updated.body == "new body"
        assert updated.tags == ["b", "c"]
        assert updated.created_at == note.created_at
        assert updated.updated_at > note.updated_at
        assert await repository.get(note.id) == updated

    async def test_partial_patch_keeps_other_fields(
        self, repository: NoteRepository
    ) -> None:
        note = await repository.create("Title", "body", ["a"])

        updated = await repository.update(note.id, NotePatch(body="changed"))

        assert updated.title == "Title"
        assert updated.tags == ["a"]

    async def test_empty_tag_list_clears_tags(
        self, repository: NoteRepository
    ) -> None:
        note = await repository.create("Title", tags=["a"])

        updated = await repository.update(note.id, NotePatch(tags=[]))

        assert updated.tags == []

    async def test_empty_patch_does_not_write(self, mock_store: Mock) -> None:
        note_id = str(uuid4())
        now = datetime.now(timezone.utc)
        mock_store.select.return_value = [
            {
                "id": note_id,
                "title": "Title",
                "body": "",
                "tags": None,
                "created_at": now,
                "updated_at": now,
                "deleted_at": None,
            }
        ]
        repository = NoteRepository(mock_store)

        note = await repository.update(note_id, NotePatch())

        assert note.id == note_id
        mock_store.update_where.assert_not_called()

    async def test_blank_title_is_rejected(self, repository: NoteRepository) -> None:
        note = await repository.create("Title")

        with pytest.raises(ValidationError):
            await repository.update(note.id, NotePatch(title=" "))

        assert (await repository.get(note.id)).title == "Title"

    async def test_deleted_note_cannot_be_updated(
        self, repository: NoteRepository
    ) -> None:
        note = await repository.create("Title")
        await repository.soft_delete(note.id)

        with pytest.raises(NotFoundError):
            await repository.update(note.id, NotePatch(title="New"))

    async def test_clock_behind_store(self, store: SQLiteNoteStore) -> None:
        """Test that updated_at never precedes created_at."""
        repository = NoteRepository(
            store, clock=lambda: datetime(2000, 1, 1, tzinfo=timezone.utc)
        )
        note = await repository.create("Title")

        updated = await repository.update(note.id, NotePatch(title="New"))

        assert updated.title == "New"
        assert updated.updated_at == note.created_at
        assert await repository.get(note.id) == updated


class TestSoftDeleteAndRestore:
    """soft_delete / restore tests."""

    async def test_deleted_note_is_hidden(self, repository: NoteRepository) -> None:
        note = await repository.create("Title")

        deleted = await repository.soft_delete(note.id)

        assert deleted.deleted_at is not None
        assert deleted.updated_at == note.updated_at
        with pytest.raises(NotFoundError):
            await repository.get(note.id)

    async def test_delete_twice_fails(self, repository: NoteRepository) -> None:
        note = await repository.create("Title")
        await repository.soft_delete(note.id)

        with pytest.raises(NotFoundError):
            await repository.soft_delete(note.id)

    async def test_restore(self, repository: NoteRepository) -> None:
        note = await repository.create("Title", "body", ["a"])
        await repository.soft_delete(note.id)

        restored = await repository.restore(note.id)

        assert restored == note
        assert await repository.get(note.id) == note

    async def test_restore_active_note_fails(self, repository: NoteRepository) -> None:
        note = await repository.create("Title")

        with pytest.raises(NotFoundError):
            await repository.restore(note.id)

    async def test_list_deleted_most_recent_first(
        self, repository: NoteRepository
    ) -> None:
        first = await repository.create("First")
        second = await repository.create("Second")
        await repository.create("Active")
        await repository.soft_delete(first.id)
        await repository.soft_delete(second.id)

        deleted = await repository.list_deleted()

        assert [note.id for note in deleted] == [second.id, first.id]


class TestPurge:
    """purge / purge_all tests."""

    async def test_purge_active_note(self, repository: NoteRepository) -> None:
        note = await repository.create("Title")

        await repository.purge(note.id)

        with pytest.raises(NotFoundError):
            await repository.get(note.id)
        with pytest.raises(NotFoundError):
            await repository.restore(note.id)

    async def test_purge_deleted_note(self, repository: NoteRepository) -> None:
        note = await repository.create("Title")
        await repository.soft_delete(note.id)

        await repository.purge(note.id)

        assert await repository.list_deleted() == []
        with pytest.raises(NotFoundError):
            await repository.get(note.id)
        with pytest.raises(NotFoundError):
            await repository.restore(note.id)

    async def test_purge_unknown_note(self, repository: NoteRepository) -> None:
        with pytest.raises(NotFoundError):
            await repository.purge(str(uuid4()))

    async def test_purge_all(self, repository: NoteRepository) -> None:
        await repository.create("One")
        deleted = await repository.create("Two")
        await repository.soft_delete(deleted.id)

        removed = await repository.purge_all()

        assert removed == 2
        assert await repository.list_notes() == []
        assert await repository.list_deleted() == []

    async def test_purge_all_when_empty(self, repository: NoteRepository) -> None:
        assert await repository.purge_all() == 0


class TestStoreFailures:
    """Store failures surface as StoreError."""

    async def test_database_error_on_list(self, mock_store: Mock) -> None:
        mock_store.select.side_effect = DatabaseError("disk I/O error")
        repository = NoteRepository(mock_store)

        with pytest.raises(StoreError) as exc_info:
            await repository.list_notes()

        assert "Failed to list notes" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, DatabaseError)

    async def test_os_error_on_create(self, mock_store: Mock) -> None:
        mock_store.insert.side_effect = OSError("read-only file system")
        repository = NoteRepository(mock_store)

        with pytest.raises(StoreError, match="Failed to create"):
            await repository.create("Title")

    async def test_invalid_record_from_store(self, mock_store: Mock) -> None:
        mock_store.select.return_value = [{"id": str(uuid4()), "title": "x"}]
        repository = NoteRepository(mock_store)

        with pytest.raises(StoreError):
            await repository.list_notes()

    async def test_soft_delete_filters_active_notes(self, mock_store: Mock) -> None:
        note_id = str(uuid4())
        repository = NoteRepository(mock_store)

        with pytest.raises(NotFoundError):
            await repository.soft_delete(note_id)

        where = mock_store.update_where.call_args.args[0]
        assert where == NoteFilter(note_id=note_id, state=NoteState.ACTIVE)
