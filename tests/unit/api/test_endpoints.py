"""
Unit tests for API REST endpoints.

Drives the Flask test client against an app whose container holds the
lifecycle controller over an in-memory record store and a local object
store in a temporary directory.
"""

import time
from unittest.mock import Mock

import pytest

from app_factory import AppConfig, create_app
from oncedrop.application.dependency_container import DependencyContainer
from oncedrop.domain.object_storage import IObjectStore, SignedUrlService
from oncedrop.domain.transfers import (
    TokenLifecycleController,
    TransferPolicy,
)
from oncedrop.infrastructure.local_object_store import LocalObjectStore
from tests.fixtures.mock_repositories import InMemoryObjectStore

PAYLOAD = b"\x93\x00encrypted-bytes\xff" * 32


@pytest.fixture
def local_store(tmp_path):
    signer = SignedUrlService(secret_key="api-test-secret", base_url="/api/v1/blobs")
    return LocalObjectStore(str(tmp_path / "blobs"), signer)


@pytest.fixture
def container(record_repository, local_store, clock):
    container = DependencyContainer()
    controller = TokenLifecycleController(record_repository, local_store, clock=clock)
    container.register_singleton(IObjectStore, local_store)
    container.register_singleton(TokenLifecycleController, controller)
    return container


@pytest.fixture
def app_config():
    config = AppConfig()
    config.public_base_url = ""
    return config


@pytest.fixture
def flask_app(app_config, container):
    app = create_app(app_config, container=container)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(flask_app):
    return flask_app.test_client()


def upload(client, payload=PAYLOAD, mime="application/pdf", filename="report.pdf"):
    headers = {}
    if mime is not None:
        headers["X-Mime"] = mime
    if filename is not None:
        headers["X-Filename"] = filename
    return client.post("/api/v1/files/", data=payload, headers=headers)


class TestUpload:
    def test_upload_returns_token_and_link(self, client, start_time):
        response = upload(client)

        assert response.status_code == 201
        body = response.get_json()
        token = body["token"]
        assert len(token) == 22
        assert body["download_url"] == f"http://localhost/api/v1/files/{token}/download"
        assert body["expires_at"] == "2024-03-02T12:00:00+00:00"

    def test_public_base_url_is_used_for_links(self, app_config, container):
        app_config.public_base_url = "https://drop.example/"
        client = create_app(app_config, container=container).test_client()

        body = upload(client).get_json()

        assert body["download_url"].startswith("https://drop.example/api/v1/files/")

    @pytest.mark.parametrize(
        "kwargs,category",
        [
            ({"payload": b""}, "empty_file"),
            ({"mime": "text/plain"}, "unsupported_mime_type"),
            ({"mime": None}, "unsupported_mime_type"),
            ({"filename": None}, "filename_required"),
            ({"filename": "..%2Fsecret.pdf"}, "illegal_filename"),
            ({"filename": "run.exe"}, "extension_not_allowed"),
        ],
    )
    def test_invalid_uploads(self, client, kwargs, category):
        response = upload(client, **kwargs)

        assert response.status_code == 400
        body = response.get_json()
        assert body["error"] == category
        assert set(body) == {"error", "title", "message", "action"}

    def test_payload_over_ceiling(self, client):
        response = upload(client, payload=b"x" * (TransferPolicy.MAX_PAYLOAD_BYTES + 1))
        assert response.status_code == 413
        assert response.get_json()["error"] == "file_too_large"

    def test_body_over_request_limit(self, client, flask_app):
        oversize = b"x" * (flask_app.config["MAX_CONTENT_LENGTH"] + 1)
        response = upload(client, payload=oversize)
        assert response.status_code == 413
        assert response.get_json()["error"] == "file_too_large"

    def test_storage_failure_is_503_without_details(self, flask_app, record_repository):
        record_repository.fail_with = "redis://secret-host refused"
        response = upload(flask_app.test_client())

        assert response.status_code == 503
        body = response.get_json()
        assert body["error"] == "storage_unavailable"
        assert "secret-host" not in response.get_data(as_text=True)

    def test_unexpected_error_is_500(self, flask_app, container):
        broken = Mock()
        broken.issue.side_effect = RuntimeError("boom")
        container.override(TokenLifecycleController, broken)

        response = upload(flask_app.test_client())

        assert response.status_code == 500
        assert response.get_json()["error"] == "system_error"

    def test_services_unavailable(self, flask_app):
        flask_app.container = None
        response = upload(flask_app.test_client())
        assert response.status_code == 503


class TestMetadata:
    def test_metadata_does_not_consume(self, client):
        token = upload(client).get_json()["token"]

        for _ in range(3):
            response = client.get(f"/api/v1/files/{token}/metadata")
            assert response.status_code == 200
            assert response.get_json() == {
                "original_name": "report.pdf",
                "mime": "application/pdf",
            }

        assert client.get(f"/api/v1/files/{token}/download").status_code == 302

    def test_unknown_token(self, client):
        response = client.get(f"/api/v1/files/{'Z' * 22}/metadata")
        assert response.status_code == 404
        assert response.get_json()["error"] == "token_not_found"

    def test_after_redemption(self, client):
        token = upload(client).get_json()["token"]
        client.get(f"/api/v1/files/{token}/download")

        response = client.get(f"/api/v1/files/{token}/metadata")
        assert response.status_code == 409
        assert response.get_json()["error"] == "token_already_used"

    def test_after_expiry(self, client, clock):
        token = upload(client).get_json()["token"]
        clock.advance(hours=24)

        response = client.get(f"/api/v1/files/{token}/metadata")
        assert response.status_code == 410
        assert response.get_json()["error"] == "token_expired"


class TestDownload:
    def test_redirect_then_fetch_blob(self, client):
        token = upload(client).get_json()["token"]

        response = client.get(f"/api/v1/files/{token}/download")

        assert response.status_code == 302
        location = response.headers["Location"]
        assert location.startswith(f"/api/v1/blobs/{token}.bin?")

        blob = client.get(location)
        assert blob.status_code == 200
        assert blob.data == PAYLOAD
        assert blob.mimetype == "application/octet-stream"
        assert blob.headers["X-Content-Type-Options"] == "nosniff"
        assert "attachment" in blob.headers["Content-Disposition"]

    def test_second_download_is_refused(self, client):
        token = upload(client).get_json()["token"]
        client.get(f"/api/v1/files/{token}/download")

        response = client.get(f"/api/v1/files/{token}/download")

        assert response.status_code == 409
        assert response.get_json()["error"] == "token_already_used"
        assert "Location" not in response.headers

    def test_expired_token(self, client, clock):
        token = upload(client).get_json()["token"]
        clock.advance(days=2)

        response = client.get(f"/api/v1/files/{token}/download")
        assert response.status_code == 410

    def test_malformed_token(self, client):
        response = client.get("/api/v1/files/not-a-token/download")
        assert response.status_code == 404

    def test_storage_failure(self, client, record_repository):
        token = upload(client).get_json()["token"]
        record_repository.fail_with = "down"

        response = client.get(f"/api/v1/files/{token}/download")
        assert response.status_code == 503
        assert response.get_json()["error"] == "storage_unavailable"


class TestBlobEndpoint:
    def test_bad_signature(self, client, local_store):
        local_store.put("abc.bin", b"x", "application/octet-stream")
        expires = int(time.time()) + 60

        response = client.get(f"/api/v1/blobs/abc.bin?expires={expires}&signature=deadbeef")

        assert response.status_code == 403
        assert response.get_json()["error"] == "invalid_locator"

    def test_missing_parameters(self, client):
        assert client.get("/api/v1/blobs/abc.bin").status_code == 403

    def test_expired_locator(self, client, local_store):
        local_store.put("abc.bin", b"x", "application/octet-stream")
        signed = local_store.signer.generate_signed_url(
            "abc.bin", 60, now=time.time() - 120
        )

        response = client.get(signed.url)

        assert response.status_code == 410
        assert response.get_json()["error"] == "locator_expired"

    def test_blob_removed_after_signing(self, client, local_store):
        local_store.put("abc.bin", b"x", "application/octet-stream")
        url = local_store.issue_retrieval_locator("abc.bin", 60)
        local_store.delete("abc.bin")

        response = client.get(url)
        assert response.status_code == 404
        assert response.get_json()["error"] == "object_not_found"

    def test_disabled_for_other_backends(self, flask_app, container):
        container.override(IObjectStore, InMemoryObjectStore())
        response = flask_app.test_client().get("/api/v1/blobs/abc.bin?expires=1&signature=x")
        assert response.status_code == 404


class TestHealthAndDocs:
    def test_health_reports_components(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        body = response.get_json()
        assert body["status"] == "ok"
        assert body["storage"] == "local"
        assert body["redis"] == "not_configured"
        assert body["celery"] == "unavailable"

    def test_health_degraded_without_container(self, flask_app):
        flask_app.container = None
        response = flask_app.test_client().get("/health")
        assert response.status_code == 503
        assert response.get_json()["status"] == "degraded"

    def test_swagger_spec_lists_routes(self, client):
        response = client.get("/api/v1/swagger.json")
        assert response.status_code == 200
        paths = response.get_json()["paths"]
        assert "/files/" in paths
        assert "/files/{token}/download" in paths
        assert "/blobs/{key}" in paths
