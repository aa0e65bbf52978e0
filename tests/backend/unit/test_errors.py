"""
Unit tests for core.errors module.
Tests error kinds, status codes and the response envelope.
"""
from writique.core import errors


class TestErrorHierarchy:
    """Each error carries its kind and status from the class that raised it."""

    def test_defaults(self):
        err = errors.NotFoundError()
        assert err.kind == errors.ErrorKind.NOT_FOUND
        assert err.status_code == 404
        assert err.code == "NOT_FOUND"

    def test_payload_too_large_is_a_validation_error(self):
        err = errors.PayloadTooLargeError()
        assert isinstance(err, errors.ValidationError)
        assert err.kind == errors.ErrorKind.VALIDATION
        assert err.status_code == 413

    def test_upstream_message_is_generic(self):
        err = errors.UpstreamError()
        assert err.status_code == 500
        assert err.message == "An upstream service failed"

    def test_to_dict(self):
        err = errors.AuthorizationError("FORBIDDEN_NOT_OWNER", "You can only modify your own posts")
        assert err.to_dict() == {
            "success": False,
            "error": {
                "kind": "authorization",
                "code": "FORBIDDEN_NOT_OWNER",
                "message": "You can only modify your own posts",
            },
        }
