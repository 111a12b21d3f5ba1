from typing import Generic, TypeVar, Optional, Callable, Any, Dict, Union
from http import HTTPStatus

T = TypeVar('T')  # Generic type variable
U = TypeVar('U')  # Additional type variable for map operations

class Result(Generic[T]):
    """
    Outcome of one step of the spreadsheet pipeline.

    A Result carries either the value produced by a step (a byte buffer,
    a RecordSet, a DisplayGrid) or the message of the error that stopped
    the pipeline, together with the HTTP status the web layer reports.

    Attributes:
        success (bool): Indicates if the step succeeded
        data (Optional[T]): The produced value (only present when success is True)
        error (Optional[str]): Error message shown to the user (only present when success is False)
        status_code (HTTPStatus): HTTP status code (default: 200 for success, 400 for failure)
    """
    def __init__(
        self,
        success: bool,
        data: Optional[T] = None,
        error: Optional[str] = None,
        status_code: Optional[Union[int, HTTPStatus]] = None
    ):
        self.success = success
        self.data = data
        self.error = error

        if status_code is None:
            self.status_code = HTTPStatus.OK if success else HTTPStatus.BAD_REQUEST
        elif isinstance(status_code, HTTPStatus):
            self.status_code = status_code
        else:
            self.status_code = HTTPStatus(status_code)

    @classmethod
    def ok(cls, data: T, status_code: Optional[Union[int, HTTPStatus]] = HTTPStatus.OK) -> "Result[T]":
        """
        Create a successful Result wrapping the given value.
        """
        return cls(success=True, data=data, status_code=status_code)

    @classmethod
    def fail(cls, error: str, status_code: Optional[Union[int, HTTPStatus]] = HTTPStatus.BAD_REQUEST) -> "Result[T]":
        """
        Create a failed Result with the provided error message.

        Args:
            error (str): The error message describing the failure
            status_code (Optional[Union[int, HTTPStatus]], optional): HTTP status code. Defaults to 400 BAD_REQUEST.
        """
        return cls(success=False, error=error, status_code=status_code)

    @classmethod
    def read_error(cls, error: str = "Failed to read file") -> "Result[T]":
        """
        Failed Result for an upload whose bytes could not be read.

        Returns:
            Result[T]: A failed Result with 400 status code
        """
        return cls(success=False, error=error, status_code=HTTPStatus.BAD_REQUEST)

    @classmethod
    def decode_error(cls, error: str = "File is not a recognized spreadsheet") -> "Result[T]":
        """
        Failed Result for a buffer that is not a readable workbook.

        Returns:
            Result[T]: A failed Result with 422 status code
        """
        return cls(success=False, error=error, status_code=HTTPStatus.UNPROCESSABLE_ENTITY)

    @classmethod
    def server_error(cls, error: str = "Internal server error") -> "Result[T]":
        """
        Failed Result for an unexpected error inside the pipeline.

        Returns:
            Result[T]: A failed Result with 500 status code
        """
        return cls(success=False, error=error, status_code=HTTPStatus.INTERNAL_SERVER_ERROR)

    def is_success(self) -> bool:
        return self.success

    def is_failure(self) -> bool:
        return not self.success

    def unwrap(self, default: Optional[T] = None) -> Optional[T]:
        """
        Safely access the data value with an optional default value.

        Args:
            default (Optional[T], optional): Value to return if the Result is a failure. Defaults to None.

        Returns:
            Optional[T]: The data value if successful, otherwise the default value
        """
        return self.data if self.is_success() else default

    def map(self, fn: Callable[[T], U]) -> "Result[U]":
        """
        Apply a function to the data if the Result is successful.

        Args:
            fn (Callable[[T], U]): Function to apply to the data

        Returns:
            Result[U]: A new Result with the transformed data or the original error
        """
        if self.is_success():
            return Result.ok(fn(self.data), status_code=self.status_code)  # type: ignore
        return Result.fail(self.error or "", status_code=self.status_code)  # type: ignore

    def and_then(self, fn: Callable[[T], "Result[U]"]) -> "Result[U]":
        """
        Chain pipeline steps that return Result objects.

        If this Result is a failure, it short-circuits and the error is
        carried forward with its status code. If it's a success, the
        function is applied to the data and its Result is returned.

        Args:
            fn (Callable[[T], Result[U]]): Function that takes the success data and returns a new Result

        Returns:
            Result[U]: Either the original failure or the new Result from the function
        """
        if not self.is_success():
            return Result.fail(self.error or "", status_code=self.status_code)  # type: ignore
        return fn(self.data)  # type: ignore

    def on_success(self, fn: Callable[[T], None]) -> "Result[T]":
        """
        Execute a side effect function if the Result is successful.

        Returns:
            Result[T]: The original Result, unchanged
        """
        if self.is_success():
            fn(self.data)  # type: ignore
        return self

    def on_failure(self, fn: Callable[[str], None]) -> "Result[T]":
        """
        Execute a side effect function if the Result is a failure.

        Returns:
            Result[T]: The original Result, unchanged
        """
        if not self.is_success():
            fn(self.error or "")
        return self

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert Result to a dictionary suitable for API responses.

        Returns:
            Dict[str, Any]: Dictionary containing success, status_code, status and data or error
        """
        response = {
            "success": self.success,
            "status_code": self.status_code.value,
            "status": self.status_code.phrase
        }

        if self.is_success():
            response["data"] = self.data
        else:
            response["error"] = self.error

        return response

    def __str__(self) -> str:
        status_info = f"{self.status_code.value} {self.status_code.phrase}"
        if self.is_success():
            data_repr = str(self.data)
            # Truncate long data representations
            if len(data_repr) > 100:
                data_repr = f"{data_repr[:97]}..."
            return f"Success ({status_info}): {data_repr}"
        return f"Failure ({status_info}): {self.error}"

    def __repr__(self) -> str:
        return f"Result(success={self.success}, status_code={self.status_code!r}, data={self.data!r}, error={self.error!r})"
