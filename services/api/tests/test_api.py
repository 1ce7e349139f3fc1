"""
HTTP-level tests (FastAPI TestClient over the in-memory backend).

Run with: pytest tests/test_api.py -v
"""
import json

import pytest
from fastapi.testclient import TestClient

from core.config import UNSET_FOLDER_ID
from main import create_app
from settings import Settings

from conftest import ROOT_ID


@pytest.fixture
def client_for(make_router):
    def _client(**router_kwargs):
        settings = Settings(storage_backend="memory", target_folder_id=ROOT_ID)
        app = create_app(settings=settings, request_router=make_router(**router_kwargs))
        return TestClient(app)

    return _client


@pytest.fixture
def client(client_for):
    return client_for()


class TestListEndpoint:
    def test_lists_bridges(self, drive, client):
        drive.add_document(ROOT_ID, "本町橋", document_id="d1")

        for path in ("/", "/exec"):
            r = client.get(path)
            assert r.status_code == 200
            body = r.json()
            assert body["status"] == "success"
            assert body["bridges"][0]["id"] == "d1"

    def test_unconfigured_root(self, client_for):
        r = client_for(root_folder_id=UNSET_FOLDER_ID).get("/")
        assert r.status_code == 200
        assert r.json()["status"] == "error"
        assert "message" in r.json()


class TestAppendEndpoint:
    def test_text_plain_body(self, drive, client):
        """Field apps send JSON as text/plain; it is parsed anyway."""
        drive.add_document(ROOT_ID, "本町橋", document_id="bridge-1")

        r = client.post(
            "/exec",
            content=json.dumps({"fileId": "bridge-1", "sheetName": "主桁", "remarks": "要観察"}),
            headers={"Content-Type": "text/plain;charset=utf-8"},
        )

        assert r.status_code == 200
        assert r.json() == {
            "success": True,
            "message": "本町橋 > 主桁 に保存しました",
            "sheetName": "主桁",
        }
        assert drive.documents["bridge-1"].get_sheet("主桁").get_rows()[1][16] == "要観察"

    def test_missing_file_id(self, client):
        r = client.post("/", json={"member": "主桁"})
        assert r.status_code == 200
        assert r.json()["success"] is False
        assert "fileId" in r.json()["error"]


class TestHealth:
    def test_health(self, client):
        body = client.get("/health").json()
        assert body["status"] == "ok"
        assert body["backend"] == "memory"
        assert body["schemaVariant"] == "B"
        assert body["configured"] is True

    def test_request_id_header(self, client):
        assert client.get("/health").headers["X-Request-ID"]


class TestUnhandledErrors:
    """Failures that escape the request router still answer 200 with the client's shape."""

    @pytest.fixture
    def broken_client(self, make_router):
        router = make_router()

        def boom(*args, **kwargs):
            raise RuntimeError("unexpected")

        router.handle_list = boom
        router.handle_append = boom
        settings = Settings(storage_backend="memory", target_folder_id=ROOT_ID)
        app = create_app(settings=settings, request_router=router)
        return TestClient(app, raise_server_exceptions=False)

    def test_get(self, broken_client):
        r = broken_client.get("/")
        assert r.status_code == 200
        assert r.json() == {"status": "error", "error": "Internal server error"}

    def test_post(self, broken_client):
        r = broken_client.post("/exec", json={"fileId": "x"})
        assert r.status_code == 200
        assert r.json() == {"success": False, "error": "Internal server error"}
