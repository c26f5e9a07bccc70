"""Tests for the exception hierarchy and exit codes."""

import pytest

from destream.exceptions import (
    ApiError,
    AuthenticationError,
    DestreamError,
    ElevatedShellError,
    ExitCode,
    InputError,
    InvalidCredentialsError,
    InvalidVideoError,
    LoginTimeoutError,
    MuxingError,
    SessionUnavailableError,
    ToolNotFoundError,
)


class TestExitCodes:
    """Exit codes are part of the CLI contract."""

    def test_values(self):
        assert ExitCode.UNHANDLED_ERROR == 1
        assert ExitCode.ELEVATED_SHELL == 10
        assert ExitCode.MISSING_FFMPEG == 11
        assert ExitCode.UNK_FFMPEG_ERROR == 12
        assert ExitCode.INVALID_VIDEO_GUID == 13
        assert ExitCode.NO_SESSION_INFO == 14
        assert ExitCode.INVALID_INPUT == 15

    @pytest.mark.parametrize(
        "error, code",
        [
            (DestreamError("boom"), ExitCode.UNHANDLED_ERROR),
            (ElevatedShellError(), ExitCode.ELEVATED_SHELL),
            (ToolNotFoundError("ffmpeg"), ExitCode.MISSING_FFMPEG),
            (MuxingError("bad"), ExitCode.UNK_FFMPEG_ERROR),
            (InvalidVideoError("nope"), ExitCode.INVALID_VIDEO_GUID),
            (InvalidCredentialsError(), ExitCode.NO_SESSION_INFO),
            (LoginTimeoutError("slow"), ExitCode.NO_SESSION_INFO),
            (SessionUnavailableError(), ExitCode.NO_SESSION_INFO),
            (InputError("bad input"), ExitCode.INVALID_INPUT),
        ],
    )
    def test_default_exit_code(self, error, code):
        assert error.exit_code == code

    def test_explicit_exit_code_wins(self):
        error = ApiError("unauthorized", status_code=401, exit_code=ExitCode.NO_SESSION_INFO)
        assert error.exit_code == ExitCode.NO_SESSION_INFO


class TestDestreamError:
    """Tests for the base error."""

    def test_to_dict_minimal(self):
        assert DestreamError("boom").to_dict() == {
            "type": "DestreamError",
            "message": "boom",
            "exit_code": 1,
        }

    def test_to_dict_with_details_and_suggestion(self):
        error = ToolNotFoundError("ffmpeg")
        data = error.to_dict()
        assert data["details"] == {"tool": "ffmpeg"}
        assert "Install ffmpeg" in data["suggestion"]
        assert "ffmpeg" in str(error)

    def test_authentication_errors_carry_state(self):
        error = LoginTimeoutError("timed out", state="waiting_for_idp_redirect")
        assert isinstance(error, AuthenticationError)
        assert error.state == "waiting_for_idp_redirect"
        assert error.details["state"] == "waiting_for_idp_redirect"

    def test_muxing_error_details(self):
        error = MuxingError("bad", video_id="abc", out_path="/tmp/x.mkv", stderr="403")
        assert error.details == {"video_id": "abc", "out_path": "/tmp/x.mkv"}
        assert error.stderr == "403"
