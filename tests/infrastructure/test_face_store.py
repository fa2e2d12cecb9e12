"""Tests for the SQLAlchemy face store on in-memory SQLite."""
import json

import pytest

from app.domain.value_objects.recognition import RecognitionStats


@pytest.fixture
def descriptor():
    return json.dumps([0.1, 0.2, 0.3])


class TestSQLAlchemyFaceStore:
    """CRUD, recognition logs and statistics."""

    async def test_add_and_get_face(self, store, descriptor):
        """Should assign an id and timestamps."""
        face = await store.add_face("Alice", descriptor, "uploads/alice.jpg")

        assert face.id is not None
        assert face.created_at is not None

        loaded = await store.get_face(face.id)
        assert loaded.name == "Alice"
        assert loaded.descriptor == descriptor
        assert loaded.image_path == "uploads/alice.jpg"

    async def test_get_unknown_face(self, store):
        assert await store.get_face(999) is None

    async def test_list_faces(self, store, descriptor):
        first = await store.add_face("Alice", descriptor, "a.jpg")
        second = await store.add_face("Bob", descriptor, "b.jpg")

        faces = await store.list_faces()

        assert {face.id for face in faces} == {first.id, second.id}

    async def test_delete_face(self, store, descriptor):
        face = await store.add_face("Alice", descriptor, "a.jpg")

        assert await store.delete_face(face.id)
        assert await store.get_face(face.id) is None
        assert await store.delete_face(face.id) is False

    async def test_delete_keeps_logs_with_null_reference(self, store, descriptor):
        """Logs survive the face they point at."""
        face = await store.add_face("Alice", descriptor, "a.jpg")
        await store.log_recognition(face.id, 0.9, "q.jpg")

        await store.delete_face(face.id)

        logs = await store.recent_logs()
        assert len(logs) == 1
        assert logs[0].face_id is None
        assert logs[0].person_name is None
        assert logs[0].confidence == pytest.approx(0.9)

    async def test_recent_logs_are_newest_first_and_limited(self, store, descriptor):
        face = await store.add_face("Alice", descriptor, "a.jpg")
        ids = [await store.log_recognition(face.id, 0.7 + i / 100, f"q{i}.jpg") for i in range(3)]

        logs = await store.recent_logs(limit=2)

        assert [log.id for log in logs] == [ids[2], ids[1]]
        assert all(log.person_name == "Alice" for log in logs)

    async def test_stats(self, store, descriptor):
        alice = await store.add_face("Alice", descriptor, "a.jpg")
        bob = await store.add_face("Bob", descriptor, "b.jpg")
        await store.add_face("Carol", descriptor, "c.jpg")
        await store.log_recognition(alice.id, 0.8, "1.jpg")
        await store.log_recognition(alice.id, 0.9, "2.jpg")
        await store.log_recognition(bob.id, 0.7, "3.jpg")

        stats = await store.stats()

        assert stats.total_faces == 3
        assert stats.unique_faces_recognized == 2
        assert stats.average_confidence == pytest.approx(0.8)

    async def test_stats_on_empty_store(self, store):
        assert await store.stats() == RecognitionStats()
