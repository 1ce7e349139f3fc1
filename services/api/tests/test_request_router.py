"""
Tests for the read/write request paths and their response payloads.

Run with: pytest tests/test_request_router.py -v
"""
import json
import traceback

import pytest

from core.config import UNSET_FOLDER_ID, RouterConfig

from conftest import ROOT_ID


class TestRouterConfig:
    def test_unknown_variant_fails_at_construction(self):
        with pytest.raises(ValueError):
            RouterConfig(root_folder_id=ROOT_ID, schema_variant="C")

    def test_unset_root_is_remembered(self, make_router):
        router = make_router(root_folder_id=UNSET_FOLDER_ID)
        assert router.config_error is not None

    def test_configured_root(self, make_router):
        assert make_router().config_error is None


class TestHandleList:
    def test_success(self, drive, make_router):
        sub = drive.add_folder(ROOT_ID, "A班")
        drive.add_document(ROOT_ID, "本町橋", document_id="d1")
        drive.add_document(sub, "旭橋", document_id="d2")

        response = make_router().handle_list()

        assert response["status"] == "success"
        assert response["folderName"] == "点検データ"
        assert {b["id"] for b in response["bridges"]} == {"d1", "d2"}
        assert set(response["bridges"][0]) == {"name", "id", "url", "lastUpdated"}

    def test_unset_configuration(self, drive, make_router):
        """Sentinel root: structured error, no folder access at all."""
        response = make_router(root_folder_id=UNSET_FOLDER_ID).handle_list()

        assert response["status"] == "error"
        assert "フォルダID" in response["message"]
        assert drive.calls == []

    def test_unset_configuration_repeated(self, drive, make_router):
        """The stored error is reported, never re-raised, so nothing accumulates on it."""
        router = make_router(root_folder_id=UNSET_FOLDER_ID)
        depth = len(traceback.extract_tb(router.config_error.__traceback__))
        first = router.handle_list()

        for _ in range(500):
            assert router.handle_list() == first

        assert len(traceback.extract_tb(router.config_error.__traceback__)) == depth
        assert drive.calls == []

    def test_root_folder_is_fetched_once(self, drive, make_router):
        sub = drive.add_folder(ROOT_ID, "A班")
        drive.add_document(sub, "旭橋")

        response = make_router().handle_list()

        assert response["folderName"] == "点検データ"
        assert drive.calls.count("get_folder") == 1

    def test_missing_root_folder(self, make_router):
        response = make_router(root_folder_id="gone").handle_list()
        assert response == {"status": "error", "error": "folder not found: gone"}

    def test_unexpected_failure_is_wrapped(self, drive, make_router):
        router = make_router()

        def boom(folder_id):
            raise RuntimeError("Exceeded maximum execution time")

        drive.list_documents = boom
        response = router.handle_list()
        assert response == {"status": "error", "error": "Exceeded maximum execution time"}


class TestHandleAppend:
    @pytest.fixture
    def bridge(self, drive):
        return drive.add_document(ROOT_ID, "本町橋", document_id="bridge-1")

    def test_success_with_default_sheet(self, bridge, make_router):
        body = json.dumps({"fileId": "bridge-1", "member": "主桁", "damageId": 6})

        response = make_router().handle_append(body.encode("utf-8"))

        assert response == {
            "success": True,
            "message": "本町橋 > 点検データ に保存しました",
            "sheetName": "点検データ",
        }
        rows = bridge.get_sheet("点検データ").get_rows()
        assert rows[1][0] == 1
        assert rows[1][5] == "主桁"
        assert rows[1][8] == "6"

    def test_explicit_sheet_name(self, bridge, make_router):
        router = make_router()
        router.handle_append({"fileId": "bridge-1", "sheetName": "床版 第2径間"})
        response = router.handle_append({"fileId": "bridge-1", "sheetName": "床版 第2径間"})

        assert response["sheetName"] == "床版 第2径間"
        sheet = bridge.get_sheet("床版 第2径間")
        assert [r[0] for r in sheet.get_rows()[1:]] == [1, 2]

    def test_missing_file_id(self, drive, bridge, make_router):
        """No fileId: failure mentioning the file id, nothing opened or written."""
        response = make_router().handle_append(json.dumps({"member": "主桁"}))

        assert response["success"] is False
        assert "fileId" in response["error"]
        assert drive.calls == []
        assert bridge.sheet_names() == ["Sheet1"]

    def test_blank_file_id(self, drive, make_router):
        response = make_router().handle_append({"fileId": "   "})
        assert response["success"] is False
        assert "open_document" not in drive.calls

    def test_invalid_json(self, make_router):
        response = make_router().handle_append(b"{not json")
        assert response["success"] is False
        assert "JSON" in response["error"]

    def test_non_object_body(self, make_router):
        response = make_router().handle_append("[1, 2]")
        assert response == {"success": False, "error": "Request body must be a JSON object"}

    def test_empty_body(self, make_router):
        assert make_router().handle_append(b"")["success"] is False

    def test_unknown_document(self, make_router):
        response = make_router().handle_append({"fileId": "nope"})
        assert response == {"success": False, "error": "document not found: nope"}

    def test_access_denied(self, drive, bridge, make_router):
        drive.deny("bridge-1")
        response = make_router().handle_append({"fileId": "bridge-1"})
        assert response["success"] is False
        assert "Permission denied" in response["error"]

    def test_write_works_without_root_folder(self, bridge, make_router):
        """Appends only need fileId; the root folder setting is for listing."""
        router = make_router(root_folder_id=UNSET_FOLDER_ID)
        assert router.handle_append({"fileId": "bridge-1"})["success"] is True

    def test_variant_a(self, bridge, make_router):
        router = make_router(schema_variant="A", default_sheet_name="下面")
        response = router.handle_append(
            {"fileId": "bridge-1", "member": "主桁", "damageName": "ひびわれ", "inputTime": "11:58"}
        )

        assert response["sheetName"] == "下面"
        row = bridge.get_sheet("下面").get_rows()[1]
        assert row == ["2024/05/01 12:04:05", 1, "主桁", "", "ひびわれ", "", "11:58"]
