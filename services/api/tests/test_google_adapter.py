"""
Tests for the Google Drive adapter against a mocked Drive v3 service.

Run with: pytest tests/test_google_adapter.py -v
"""
from datetime import datetime, timezone
from unittest.mock import MagicMock

import httplib2
import pytest
from googleapiclient.errors import HttpError

from adapters.google import (
    FOLDER_MIME,
    SPREADSHEET_MIME,
    DriveFolderProvider,
    host_errors,
    load_credentials,
)
from core.errors import AccessError, ConfigurationError, InternalError, NotFoundError


def _http_error(status: int) -> HttpError:
    return HttpError(
        resp=httplib2.Response({"status": status}),
        content=b'{"error": {"message": "boom"}}',
    )


@pytest.fixture
def service():
    return MagicMock()


@pytest.fixture
def provider(service):
    p = DriveFolderProvider(credentials=lambda: None)
    p._service = service
    return p


class TestHostErrors:
    def test_404(self):
        with pytest.raises(NotFoundError):
            with host_errors("document", "x"):
                raise _http_error(404)

    def test_403(self):
        with pytest.raises(AccessError):
            with host_errors("document", "x"):
                raise _http_error(403)

    def test_other_status(self):
        with pytest.raises(InternalError):
            with host_errors("document", "x"):
                raise _http_error(500)

    def test_other_exceptions_pass_through(self):
        with pytest.raises(KeyError):
            with host_errors("document", "x"):
                raise KeyError("id")


class TestDriveFolderProvider:
    def test_get_folder(self, provider, service):
        service.files.return_value.get.return_value.execute.return_value = {
            "id": "f1", "name": "点検データ", "mimeType": FOLDER_MIME,
        }
        folder = provider.get_folder("f1")
        assert (folder.id, folder.name) == ("f1", "点検データ")

    def test_get_folder_rejects_non_folder(self, provider, service):
        service.files.return_value.get.return_value.execute.return_value = {
            "id": "s1", "name": "本町橋", "mimeType": SPREADSHEET_MIME,
        }
        with pytest.raises(NotFoundError):
            provider.get_folder("s1")

    def test_get_folder_missing(self, provider, service):
        service.files.return_value.get.return_value.execute.side_effect = _http_error(404)
        with pytest.raises(NotFoundError):
            provider.get_folder("gone")

    def test_list_documents_follows_pages(self, provider, service):
        service.files.return_value.list.return_value.execute.side_effect = [
            {
                "files": [{"id": "a", "name": "旭橋", "modifiedTime": "2024-01-31T15:30:00.000Z"}],
                "nextPageToken": "p2",
            },
            {"files": [{"id": "b", "name": "栄橋", "webViewLink": "https://example/b"}]},
        ]

        docs = provider.list_documents("root")

        assert [d.id for d in docs] == ["a", "b"]
        assert docs[0].url == "https://docs.google.com/spreadsheets/d/a/edit"
        assert docs[0].modified_time == datetime(2024, 1, 31, 15, 30, tzinfo=timezone.utc)
        assert docs[1].url == "https://example/b"
        assert docs[1].modified_time is None

        q = service.files.return_value.list.call_args.kwargs["q"]
        assert "'root' in parents" in q
        assert SPREADSHEET_MIME in q
        assert "trashed = false" in q

    def test_find_files_by_name_is_exact(self, provider, service):
        service.files.return_value.list.return_value.execute.return_value = {
            "files": [{"id": "a", "name": "本町橋"}, {"id": "b", "name": "本町橋 "}],
        }
        assert provider.find_files_by_name("root", "本町橋") == ["a"]

    def test_find_files_by_name_matches_any_file_type(self, provider, service):
        """A PDF or image with the bridge name blocks creation just like a spreadsheet."""
        service.files.return_value.list.return_value.execute.return_value = {
            "files": [{"id": "pdf", "name": "本町橋"}],
        }
        assert provider.find_files_by_name("root", "本町橋") == ["pdf"]

        q = service.files.return_value.list.call_args.kwargs["q"]
        assert SPREADSHEET_MIME not in q
        assert f"mimeType != '{FOLDER_MIME}'" in q
        assert "'root' in parents" in q
        assert "trashed = false" in q

    def test_query_escapes_quotes(self, provider, service):
        service.files.return_value.list.return_value.execute.return_value = {"files": []}
        provider.find_files_by_name("root", "O'Brien橋")
        q = service.files.return_value.list.call_args.kwargs["q"]
        assert "name = 'O\\'Brien橋'" in q

    def test_create_document_in_folder(self, provider, service):
        service.files.return_value.create.return_value.execute.return_value = {
            "id": "new", "name": "本町橋",
        }
        info = provider.create_document("sub", "本町橋")

        body = service.files.return_value.create.call_args.kwargs["body"]
        assert body == {"name": "本町橋", "mimeType": SPREADSHEET_MIME, "parents": ["sub"]}
        assert info.id == "new"


class TestCredentials:
    def test_missing_service_account(self):
        with pytest.raises(ConfigurationError):
            load_credentials("")
