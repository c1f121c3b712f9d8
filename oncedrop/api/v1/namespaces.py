"""
API Namespaces - Organized endpoint groups
"""

from flask import current_app, redirect, request, send_file
from flask_restx import Namespace, Resource
from werkzeug.exceptions import RequestEntityTooLarge

from oncedrop.api.v1.models import error_response, metadata_response, upload_response
from oncedrop.domain.errors import ErrorCategory, create_error_response
from oncedrop.domain.object_storage import IObjectStore, SignatureCheck
from oncedrop.domain.transfers import (
    TokenLifecycleController,
    TransferOutcome,
    ValidationFailure,
)
from oncedrop.infrastructure.local_object_store import LocalObjectStore

# Outcome -> (category, status) for every non-success outcome of a token lookup
_TOKEN_OUTCOME_ERRORS = {
    TransferOutcome.NOT_FOUND: (ErrorCategory.TOKEN_NOT_FOUND, 404),
    TransferOutcome.ALREADY_USED: (ErrorCategory.TOKEN_ALREADY_USED, 409),
    TransferOutcome.EXPIRED: (ErrorCategory.TOKEN_EXPIRED, 410),
    TransferOutcome.STORAGE_ERROR: (ErrorCategory.STORAGE_UNAVAILABLE, 503),
}


def _get_controller():
    """Resolve the lifecycle controller, or None when services are down."""
    container = getattr(current_app, "container", None)
    if container is None:
        return None
    return container.resolve(TokenLifecycleController)


def _service_unavailable():
    return create_error_response(
        ErrorCategory.STORAGE_UNAVAILABLE,
        "Application services not initialized",
        status_code=503,
    )


def _token_error(outcome: TransferOutcome, token: str):
    category, status = _TOKEN_OUTCOME_ERRORS.get(
        outcome, (ErrorCategory.SYSTEM_ERROR, 500)
    )
    return create_error_response(
        category, f"Token {token[:6]}...: {outcome.value}", status_code=status
    )


def _download_url(token: str) -> str:
    base = current_app.config.get("PUBLIC_BASE_URL") or request.host_url
    return f"{base.rstrip('/')}/api/v1/files/{token}/download"


# =============================================================================
# Files Namespace - Upload, metadata and one-time download
# =============================================================================

files_ns = Namespace("files", description="One-time file transfer operations")


@files_ns.route("/")
class FileUpload(Resource):
    """Upload an encrypted file"""

    @files_ns.doc(
        "upload_file",
        params={
            "X-Mime": {"in": "header", "description": "Declared content type"},
            "X-Filename": {
                "in": "header",
                "description": "Percent-encoded original filename",
            },
        },
    )
    @files_ns.response(201, "Created", upload_response)
    @files_ns.response(400, "Invalid Upload", error_response)
    @files_ns.response(413, "File Too Large", error_response)
    @files_ns.response(503, "Storage Unavailable", error_response)
    def post(self):
        """
        Upload ciphertext and receive a one-time download token

        The request body is the raw encrypted payload. Declared type and
        filename travel in headers and are stored as metadata only.
        """
        try:
            try:
                payload = request.get_data(cache=False)
            except RequestEntityTooLarge:
                return create_error_response(
                    ErrorCategory.FILE_TOO_LARGE,
                    "Request body exceeds MAX_CONTENT_LENGTH",
                    status_code=413,
                )

            controller = _get_controller()
            if controller is None:
                return _service_unavailable()

            result = controller.issue(
                payload, request.headers.get("X-Mime"), request.headers.get("X-Filename")
            )

            if result.outcome is TransferOutcome.INVALID:
                status = (
                    413
                    if result.failure is ValidationFailure.PAYLOAD_TOO_LARGE
                    else 400
                )
                return create_error_response(
                    ErrorCategory(result.failure.value),
                    f"Upload rejected: {result.failure.value}",
                    status_code=status,
                )

            if not result.success:
                return create_error_response(
                    ErrorCategory.STORAGE_UNAVAILABLE,
                    "Upload could not be stored",
                    status_code=503,
                )

            record = result.record
            return {
                "token": record.id,
                "download_url": _download_url(record.id),
                "expires_at": record.expires_at.isoformat(),
            }, 201

        except Exception as e:
            current_app.logger.exception(f"Unexpected error in upload: {str(e)}")
            return create_error_response(
                ErrorCategory.SYSTEM_ERROR,
                f"Unexpected error: {str(e)}",
                status_code=500,
            )


@files_ns.route("/<string:token>/metadata")
@files_ns.param("token", "The transfer token")
class FileMetadata(Resource):
    """Read declared metadata without consuming the token"""

    @files_ns.doc("get_file_metadata")
    @files_ns.response(200, "Success", metadata_response)
    @files_ns.response(404, "Token Not Found", error_response)
    @files_ns.response(409, "Token Already Used", error_response)
    @files_ns.response(410, "Token Expired", error_response)
    @files_ns.response(503, "Storage Unavailable", error_response)
    def get(self, token):
        """
        Get the original filename and declared type

        Safe to call any number of times; never marks the token as used.
        """
        try:
            controller = _get_controller()
            if controller is None:
                return _service_unavailable()

            result = controller.get_metadata(token)
            if result.outcome is not TransferOutcome.FOUND:
                return _token_error(result.outcome, token)

            return result.to_dict(), 200

        except Exception as e:
            current_app.logger.exception(f"Unexpected error in metadata: {str(e)}")
            return create_error_response(
                ErrorCategory.SYSTEM_ERROR,
                f"Unexpected error: {str(e)}",
                status_code=500,
            )


@files_ns.route("/<string:token>/download")
@files_ns.param("token", "The transfer token")
class FileDownload(Resource):
    """Redeem a token"""

    @files_ns.doc("download_file")
    @files_ns.response(302, "Redirect to a short-lived retrieval URL")
    @files_ns.response(404, "Token Not Found", error_response)
    @files_ns.response(409, "Token Already Used", error_response)
    @files_ns.response(410, "Token Expired", error_response)
    @files_ns.response(503, "Storage Unavailable", error_response)
    def get(self, token):
        """
        Consume the token and redirect to the ciphertext

        Succeeds at most once per token. The redirect target is valid
        for one minute.
        """
        try:
            controller = _get_controller()
            if controller is None:
                return _service_unavailable()

            result = controller.redeem(token)
            if result.outcome is not TransferOutcome.REDEEMED:
                return _token_error(result.outcome, token)

            return redirect(result.locator, code=302)

        except Exception as e:
            current_app.logger.exception(f"Unexpected error in download: {str(e)}")
            return create_error_response(
                ErrorCategory.SYSTEM_ERROR,
                f"Unexpected error: {str(e)}",
                status_code=500,
            )


# =============================================================================
# Blob Namespace - Signed blob access for the local object store
# =============================================================================

blob_ns = Namespace("blobs", description="Signed blob retrieval (local storage)")


@blob_ns.route("/<string:key>")
@blob_ns.param("key", "The object key")
class Blob(Resource):
    """Serve a stored blob behind a signed, short-lived URL"""

    @blob_ns.doc(
        "get_blob",
        params={
            "expires": {"in": "query", "description": "Expiry as unix seconds"},
            "signature": {"in": "query", "description": "HMAC-SHA256 signature"},
        },
    )
    @blob_ns.response(200, "Ciphertext stream")
    @blob_ns.response(403, "Invalid Signature", error_response)
    @blob_ns.response(404, "Not Found", error_response)
    @blob_ns.response(410, "Locator Expired", error_response)
    def get(self, key):
        """
        Download ciphertext via a signed URL

        Only available when the local object store is configured; cloud
        backends hand out their own signed URLs.
        """
        try:
            container = getattr(current_app, "container", None)
            if container is None:
                return _service_unavailable()

            store = container.resolve(IObjectStore)
            if not isinstance(store, LocalObjectStore):
                return create_error_response(
                    ErrorCategory.OBJECT_NOT_FOUND,
                    f"Blob endpoint disabled for {store.name} storage",
                    status_code=404,
                )

            verdict = store.signer.validate(
                key, request.args.get("expires"), request.args.get("signature")
            )
            if verdict is SignatureCheck.INVALID:
                return create_error_response(
                    ErrorCategory.INVALID_LOCATOR,
                    f"Bad signature for {key}",
                    status_code=403,
                )
            if verdict is SignatureCheck.EXPIRED:
                return create_error_response(
                    ErrorCategory.LOCATOR_EXPIRED,
                    f"Locator for {key} expired",
                    status_code=410,
                )

            stream = store.open(key)
            if stream is None:
                return create_error_response(
                    ErrorCategory.OBJECT_NOT_FOUND,
                    f"Blob {key} not found",
                    status_code=404,
                )

            response = send_file(
                stream,
                mimetype="application/octet-stream",
                as_attachment=True,
                download_name=key,
            )
            response.headers["X-Content-Type-Options"] = "nosniff"
            return response

        except Exception as e:
            current_app.logger.exception(f"Unexpected error serving blob: {str(e)}")
            return create_error_response(
                ErrorCategory.SYSTEM_ERROR,
                f"Unexpected error: {str(e)}",
                status_code=500,
            )
