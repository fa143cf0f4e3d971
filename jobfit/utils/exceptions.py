"""
Exception classes for the fit evaluation engine
"""
import asyncio
import functools
import inspect
import time
from random import uniform
from typing import Dict, Any

from fastapi import HTTPException


class JobFitBaseException(Exception):
    """Base exception for the jobfit service"""

    def __init__(
        self,
        message: str,
        error_code: str = None,
        details: Dict[str, Any] = None,
        cause: Exception = None
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.cause = cause
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/response"""
        result = {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details
        }
        if self.cause:
            result["cause"] = str(self.cause)
        return result


class NotEvaluable(JobFitBaseException):
    """A single candidate cannot be scored (no assessment or undefined scores).

    Recoverable: the batch records the candidate as skipped and moves on.
    """

    def __init__(self, message: str, candidate_id: str = None, **kwargs):
        details = kwargs.pop('details', {})
        if candidate_id:
            details['candidate_id'] = candidate_id
        self.candidate_id = candidate_id
        super().__init__(message, error_code="NOT_EVALUABLE", details=details, **kwargs)


class MalformedSkillInput(JobFitBaseException):
    """Skill text could not be parsed. Callers treat it as an empty skill set."""

    def __init__(self, message: str, value: Any = None, **kwargs):
        details = kwargs.pop('details', {})
        if value is not None:
            details['value_type'] = type(value).__name__
        super().__init__(message, error_code="MALFORMED_SKILL_INPUT", details=details, **kwargs)


class ValidationError(JobFitBaseException):
    """Raised when data validation fails"""

    def __init__(self, message: str, field: str = None, value: Any = None, **kwargs):
        details = kwargs.pop('details', {})
        if field:
            details['field'] = field
        if value is not None:
            details['invalid_value'] = str(value)
        super().__init__(message, error_code="VALIDATION_ERROR", details=details, **kwargs)


class DatabaseError(JobFitBaseException):
    """Raised when database operations fail"""

    def __init__(self, message: str, operation: str = None, collection: str = None, **kwargs):
        details = kwargs.pop('details', {})
        if operation:
            details['operation'] = operation
        if collection:
            details['collection'] = collection
        super().__init__(message, error_code="DATABASE_ERROR", details=details, **kwargs)


class ProcessingError(JobFitBaseException):
    """Raised when a batch step fails unexpectedly"""

    def __init__(self, message: str, job_description_id: str = None, **kwargs):
        details = kwargs.pop('details', {})
        if job_description_id:
            details['job_description_id'] = job_description_id
        super().__init__(message, error_code="PROCESSING_ERROR", details=details, **kwargs)


class ConfigurationError(JobFitBaseException):
    """Batch-fatal: the target job description is missing or inactive, or settings are invalid"""

    def __init__(self, message: str, config_key: str = None, config_value: Any = None, **kwargs):
        details = kwargs.pop('details', {})
        if config_key:
            details['config_key'] = config_key
        if config_value is not None:
            details['config_value'] = str(config_value)
        super().__init__(message, error_code="CONFIGURATION_ERROR", details=details, **kwargs)


class ExternalServiceError(JobFitBaseException):
    """Raised when the narrative model server fails"""

    def __init__(self, message: str, service_name: str = None, status_code: int = None, **kwargs):
        details = kwargs.pop('details', {})
        if service_name:
            details['service_name'] = service_name
        if status_code:
            details['status_code'] = status_code
        super().__init__(message, error_code="EXTERNAL_SERVICE_ERROR", details=details, **kwargs)


# HTTP Exception Mapping
def map_to_http_exception(exc: JobFitBaseException) -> HTTPException:
    """Map custom exceptions to HTTP exceptions"""

    status_code_mapping = {
        ValidationError: 400,
        ConfigurationError: 400,
        MalformedSkillInput: 400,
        NotEvaluable: 422,
        DatabaseError: 500,
        ProcessingError: 500,
        ExternalServiceError: 502,
    }

    status_code = status_code_mapping.get(type(exc), 500)

    detail = {
        "error": exc.to_dict(),
        "message": exc.message
    }

    return HTTPException(status_code=status_code, detail=detail)


class ExceptionContext:
    """Context manager that logs an operation and wraps foreign exceptions.

    jobfit exceptions pass through untouched. Lookup/type errors become
    ValidationError, anything mentioning the database becomes DatabaseError,
    and the rest becomes ProcessingError.
    """

    def __init__(self, operation: str, logger=None, **context):
        self.operation = operation
        self.logger = logger
        self.context = context

    def __enter__(self):
        if self.logger:
            self.logger.debug(f"Starting operation: {self.operation}", extra=self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            if self.logger:
                self.logger.debug(f"Operation completed: {self.operation}", extra=self.context)
            return False

        if self.logger:
            self.logger.error(
                f"Operation failed: {self.operation} - {exc_val}",
                extra={**self.context, "exception_type": exc_type.__name__}
            )

        if isinstance(exc_val, JobFitBaseException):
            return False

        if isinstance(exc_val, (KeyError, ValueError, TypeError)):
            raise ValidationError(
                f"Validation error in {self.operation}: {exc_val}",
                details=dict(self.context),
                cause=exc_val
            ) from exc_val
        if "database" in str(exc_val).lower() or "mongo" in str(exc_val).lower() \
                or "pymongo" in exc_type.__module__:
            raise DatabaseError(
                f"Database error in {self.operation}: {exc_val}",
                operation=self.operation,
                details=dict(self.context),
                cause=exc_val
            ) from exc_val
        raise ProcessingError(
            f"Processing error in {self.operation}: {exc_val}",
            details=dict(self.context),
            cause=exc_val
        ) from exc_val


def retry_with_logging(
    max_attempts: int = 3,
    backoff_factor: float = 1.0,
    exceptions: tuple = (Exception,),
    logger=None
):
    """Decorator to retry operations with exponential backoff and logging"""

    def _delay(attempt: int) -> float:
        return backoff_factor * (2 ** attempt) + uniform(0, backoff_factor)

    def _log_failure(func, attempt: int, exc: Exception):
        if logger:
            logger.warning(f"Attempt {attempt + 1}/{max_attempts} failed for {func.__name__}: {exc}")
            if attempt == max_attempts - 1:
                logger.error(f"All {max_attempts} attempts failed for {func.__name__}")

    def decorator(func):
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            for attempt in range(max_attempts):
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    _log_failure(func, attempt, e)
                    if attempt == max_attempts - 1:
                        raise
                    await asyncio.sleep(_delay(attempt))

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs):
            for attempt in range(max_attempts):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    _log_failure(func, attempt, e)
                    if attempt == max_attempts - 1:
                        raise
                    time.sleep(_delay(attempt))

        if inspect.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator
