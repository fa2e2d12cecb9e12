"""HTTP tests for the face endpoints."""
from pathlib import Path
from types import SimpleNamespace

import cv2
import numpy as np
import pytest
from fastapi.testclient import TestClient

from app.core.config import settings
from app.core.container import ServiceContainer
from app.core.exceptions import ModelLoadError, MultipleFacesError, NoFaceDetectedError
from app.infrastructure.cache.result_cache import ResultCache
from app.infrastructure.dependencies import get_container
from app.main import app
from app.services.face_enrollment import FaceEnrollmentService
from app.services.face_recognition import FaceRecognitionService
from app.services.file_service import FileService
from tests.fakes import FakeRedis, InMemoryFaceStore, ScriptedExtractor, make_face, make_jpeg

PREFIX = f"{settings.API_V1_STR}/face"
ALICE = [0.1, 0.2, 0.3, 0.4]
STRANGER = [-0.8, 0.7, -0.6, 0.9]


@pytest.fixture
def api(tmp_path):
    container = ServiceContainer()
    container.face_store = InMemoryFaceStore()
    container.result_cache = ResultCache(FakeRedis())
    container.extractor = ScriptedExtractor()
    container.file_service = FileService(upload_dir=str(tmp_path / "uploads"))
    container.face_recognition_service = FaceRecognitionService(
        container.extractor, container.face_store, container.result_cache, threshold=0.6
    )
    container.face_enrollment_service = FaceEnrollmentService(
        container.extractor, container.face_store, container.result_cache,
        duplicate_threshold=0.7
    )

    app.dependency_overrides[get_container] = lambda: container
    yield SimpleNamespace(
        client=TestClient(app),
        container=container,
        extractor=container.extractor,
        uploads=tmp_path / "uploads",
    )
    app.dependency_overrides.clear()


def upload(image: bytes = None, content_type: str = "image/jpeg"):
    return {"image": ("face.jpg", image or make_jpeg(), content_type)}


def enroll(api, name="Alice", descriptor=ALICE, image=None):
    api.extractor.result = make_face(descriptor, confidence=0.95)
    return api.client.post(f"{PREFIX}/enroll", data={"name": name}, files=upload(image))


def stored_uploads(api):
    return list(api.uploads.glob("*.jpg")) if api.uploads.exists() else []


class TestEnrollEndpoint:

    def test_enroll_created(self, api):
        response = enroll(api)

        assert response.status_code == 201
        body = response.json()
        assert body["name"] == "Alice"
        assert body["confidence"] == pytest.approx(0.95)
        assert Path(body["imagePath"]).exists()
        assert set(body) == {"id", "name", "imagePath", "confidence"}

    def test_duplicate_conflict(self, api):
        first = enroll(api).json()

        response = enroll(api, name="Alice Again", image=make_jpeg(value=60))

        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "Face already exists in database"
        assert body["existingFace"]["id"] == first["id"]
        assert body["existingFace"]["name"] == "Alice"
        assert body["existingFace"]["similarity"] == pytest.approx(1.0)
        assert len(stored_uploads(api)) == 1

    def test_two_faces_rejected(self, api):
        api.extractor.result = MultipleFacesError(
            "Multiple faces detected. Please upload an image with only one face"
        )

        response = api.client.post(f"{PREFIX}/enroll", data={"name": "Alice"}, files=upload())

        assert response.status_code == 400
        assert response.json()["detail"].startswith("Multiple faces detected")
        assert stored_uploads(api) == []

    def test_short_name_rejected(self, api):
        response = enroll(api, name="Al")

        assert response.status_code == 400
        assert api.extractor.calls == 0
        assert stored_uploads(api) == []

    def test_missing_image(self, api):
        response = api.client.post(f"{PREFIX}/enroll", data={"name": "Alice"})
        assert response.status_code == 422

    def test_wrong_file_type(self, api):
        response = api.client.post(
            f"{PREFIX}/enroll",
            data={"name": "Alice"},
            files=upload(b"GIF89a fake", "image/gif"),
        )
        assert response.status_code == 400

    def test_model_unavailable(self, api):
        api.extractor.result = ModelLoadError("Face recognition model not loaded")

        response = api.client.post(f"{PREFIX}/enroll", data={"name": "Alice"}, files=upload())

        assert response.status_code == 503


class TestRecognizeEndpoint:

    def test_recognize_enrolled_face(self, api):
        enroll(api)

        response = api.client.post(f"{PREFIX}/recognize", files=upload(make_jpeg(value=70)))

        assert response.status_code == 200
        body = response.json()
        assert body["recognized"] is True
        assert body["person"]["name"] == "Alice"
        assert body["person"]["box"] == {"x": 40.0, "y": 30.0, "width": 120.0, "height": 140.0}
        assert body["source"] == "live"
        assert body["imagePath"]

    def test_repeat_image_served_from_cache(self, api):
        enroll(api)
        image = make_jpeg(value=70)
        first = api.client.post(f"{PREFIX}/recognize", files=upload(image)).json()

        api.extractor.result = NoFaceDetectedError("No faces detected in the image")
        second = api.client.post(f"{PREFIX}/recognize", files=upload(image))

        assert second.status_code == 200
        assert second.json()["source"] == "cache"
        assert second.json()["imagePath"] == first["imagePath"]
        # enrollment image + first recognition image
        assert len(stored_uploads(api)) == 2

    def test_not_recognized(self, api):
        enroll(api)
        api.extractor.result = make_face(STRANGER)

        body = api.client.post(f"{PREFIX}/recognize", files=upload(make_jpeg(value=10))).json()

        assert body["recognized"] is False
        assert body["person"] is None
        assert body["message"] == "Face not recognized"

    def test_no_enrolled_faces(self, api):
        api.extractor.result = make_face(ALICE)

        response = api.client.post(f"{PREFIX}/recognize", files=upload())

        assert response.status_code == 404
        assert response.json()["detail"] == (
            "No faces found in database. Please enroll some faces first."
        )

    def test_no_face_in_image(self, api):
        enroll(api)
        api.extractor.result = NoFaceDetectedError("No faces detected in the image")

        response = api.client.post(f"{PREFIX}/recognize", files=upload(make_jpeg(value=5)))

        assert response.status_code == 400
        assert response.json()["detail"] == "No faces detected in the image"

    def test_live_frames_are_ephemeral(self, api):
        enroll(api)
        redis = api.container.result_cache._client
        before = dict(redis.data)

        response = api.client.post(f"{PREFIX}/recognize-live", files=upload(make_jpeg(value=33)))

        assert response.status_code == 200
        body = response.json()
        assert body["recognized"] is True
        assert body["source"] == "live"
        assert "imagePath" not in body
        assert redis.data == before
        assert len(stored_uploads(api)) == 1

    def test_live_frame_analysed_at_camera_size(self, api):
        """Boxes come back in the coordinates of the frame that was sent."""
        enroll(api)
        frame = make_jpeg(1280, 720, value=33)
        api.extractor.result = make_face(ALICE)

        body = api.client.post(f"{PREFIX}/recognize-live", files=upload(frame)).json()

        assert api.extractor.last_image == frame
        analysed = cv2.imdecode(np.frombuffer(api.extractor.last_image, np.uint8),
                                cv2.IMREAD_COLOR)
        assert analysed.shape[:2] == (720, 1280)
        assert body["person"]["box"] == {"x": 40.0, "y": 30.0, "width": 120.0, "height": 140.0}


class TestFaceManagement:

    def test_list_and_get_faces(self, api):
        alice = enroll(api).json()

        faces = api.client.get(f"{PREFIX}/faces").json()
        assert [face["name"] for face in faces] == ["Alice"]
        assert "descriptor" not in faces[0]
        assert "createdAt" in faces[0]

        face = api.client.get(f"{PREFIX}/faces/{alice['id']}")
        assert face.status_code == 200
        assert face.json()["imagePath"] == alice["imagePath"]

        assert api.client.get(f"{PREFIX}/faces/999").status_code == 404

    def test_delete_face(self, api):
        alice = enroll(api).json()

        response = api.client.delete(f"{PREFIX}/faces/{alice['id']}")
        assert response.status_code == 200
        assert response.json() == {"id": alice["id"]}

        assert api.client.delete(f"{PREFIX}/faces/{alice['id']}").status_code == 404

    def test_stats_and_dashboard(self, api):
        enroll(api)
        api.client.post(f"{PREFIX}/recognize", files=upload(make_jpeg(value=70)))

        stats = api.client.get(f"{PREFIX}/stats").json()
        assert stats == {"totalFaces": 1, "uniqueFacesRecognized": 1,
                         "averageConfidence": pytest.approx(1.0)}

        dashboard = api.client.get(f"{PREFIX}/dashboard").json()
        assert dashboard["stats"]["totalFaces"] == 1
        assert len(dashboard["faces"]) == 1
        assert dashboard["recentLogs"][0]["personName"] == "Alice"


class TestHealth:

    def test_root_health(self):
        response = TestClient(app).get("/health")
        assert response.json() == {"status": "healthy"}

    def test_face_health_reports_model(self, api):
        body = api.client.get(f"{PREFIX}/health").json()
        assert body == {"status": "healthy", "modelLoaded": True}

        api.extractor.is_ready = False
        assert api.client.get(f"{PREFIX}/health").json()["modelLoaded"] is False

    def test_uninitialized_services_unavailable(self):
        response = TestClient(app).get(f"{PREFIX}/faces")
        assert response.status_code == 503
