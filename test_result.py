from http import HTTPStatus

import pytest

from utils.result import Result


class TestResult:
    """
    Tests for the Result type used between pipeline steps.
    """

    @pytest.mark.parametrize(
        "result, expected_status",
        [
            (Result.ok([1]), HTTPStatus.OK),
            (Result.fail("nope"), HTTPStatus.BAD_REQUEST),
            (Result.read_error(), HTTPStatus.BAD_REQUEST),
            (Result.decode_error(), HTTPStatus.UNPROCESSABLE_ENTITY),
            (Result.server_error(), HTTPStatus.INTERNAL_SERVER_ERROR),
        ],
        ids=["ok", "fail", "read-error", "decode-error", "server-error"]
    )
    def test_status_codes(self, result, expected_status):
        assert result.status_code == expected_status

    def test_int_status_code_is_converted(self):
        assert Result(success=False, error="x", status_code=422).status_code is HTTPStatus.UNPROCESSABLE_ENTITY

    def test_map_and_and_then_chain(self):
        result = Result.ok(b"abc").and_then(lambda data: Result.ok(len(data))).map(lambda n: n * 2)

        assert result.is_success()
        assert result.data == 6

    def test_failure_short_circuits_and_keeps_status(self):
        calls = []

        result = Result.decode_error("bad file").and_then(
            lambda data: calls.append(data) or Result.ok(data)
        ).map(calls.append)

        assert result.is_failure()
        assert result.error == "bad file"
        assert result.status_code == HTTPStatus.UNPROCESSABLE_ENTITY
        assert calls == []

    def test_side_effect_hooks(self):
        seen = []

        Result.ok("table").on_success(seen.append).on_failure(seen.append)
        Result.read_error("Failed to read file").on_success(seen.append).on_failure(seen.append)

        assert seen == ["table", "Failed to read file"]

    def test_unwrap(self):
        assert Result.ok(3).unwrap() == 3
        assert Result.fail("x").unwrap(default=0) == 0

    def test_to_dict(self):
        assert Result.read_error("Failed to read file").to_dict() == {
            "success": False,
            "status_code": 400,
            "status": "Bad Request",
            "error": "Failed to read file",
        }
        assert Result.ok([1, 2]).to_dict()["data"] == [1, 2]

    def test_str_truncates_long_data(self):
        text = str(Result.ok("x" * 200))

        assert text.startswith("Success (200 OK): ")
        assert text.endswith("...")
        assert str(Result.server_error("boom")) == "Failure (500 Internal Server Error): boom"
