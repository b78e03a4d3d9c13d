"""HTTP exception classes."""

from fastapi import HTTPException, status


class CGALiteHTTPException(HTTPException):
    """Base exception for API errors."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        code: str = "CGA_LITE_ERROR",
    ):
        super().__init__(status_code=status_code, detail=detail)
        self.code = code


class SampleNotFoundError(CGALiteHTTPException):
    def __init__(self, name: str):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Sample rule program not found: {name}",
            code="SAMPLE_NOT_FOUND",
        )


class CRSNotFoundError(CGALiteHTTPException):
    def __init__(self, key: str):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown CRS key: {key}",
            code="CRS_NOT_FOUND",
        )


class ExecutionTimeoutError(CGALiteHTTPException):
    def __init__(self, timeout: float):
        super().__init__(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            detail=f"Rule execution exceeded {timeout}s deadline",
            code="EXECUTION_TIMEOUT",
        )
