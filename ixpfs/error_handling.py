import logging
import traceback
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

T = TypeVar("T")

logger = logging.getLogger("ixpfs")


class IXPFSError(Exception):
    """Base exception class for ixpfs errors"""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class IXPError(IXPFSError):
    """Raised by an agent when a remote 9P request fails"""
    pass


class IXPConnectionError(IXPFSError):
    """Raised when the connection to the IXP server cannot be established"""
    pass


class InvalidArgument(IXPFSError, ValueError):
    """Raised when a caller omits a required argument"""
    pass


class OpResult(Generic[T]):
    """Outcome of a shielded operation.

    ``value`` holds the agent's return value on success and the fallback on
    failure, so ``result.value`` is always safe to use.
    """
    __slots__ = ["ok", "value", "error"]

    def __init__(self, ok: bool, value: T, error: Optional[BaseException] = None):
        self.ok = ok
        self.value = value
        self.error = error

    @classmethod
    def succeeded(cls, value: T) -> "OpResult[T]":
        return cls(True, value)

    @classmethod
    def failed(cls, fallback: T, error: BaseException) -> "OpResult[T]":
        return cls(False, fallback, error)

    def unwrap(self) -> T:
        """Return the value, or raise the error that replaced it"""
        if not self.ok:
            raise self.error
        return self.value

    def __bool__(self) -> bool:
        return self.ok

    def __repr__(self) -> str:
        if self.ok:
            return f"OpResult(ok, {self.value!r})"
        return f"OpResult(failed, {self.error!r})"


def shielded(action: str, fallback: Any, call: Callable[[], T], address: str = "?") -> OpResult:
    """Run ``call``; log protocol errors and substitute ``fallback``"""
    try:
        return OpResult.succeeded(call())
    except IXPError as e:
        logger.error(
            f"could not {action} IXP agent ({address}): {e}\n  => trying to continue anyway",
            extra={
                "action": action,
                "address": address,
                "error_details": {"type": type(e).__name__, "message": str(e), **e.details},
            },
            exc_info=True,
        )
        return OpResult.failed(fallback, e)


def setup_logging(level: str = "INFO", log_file: Optional[str] = None):
    """Configure logging for the application"""
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )


def log_operation(logger: logging.Logger, operation: str, **kwargs):
    """Log an operation with its parameters"""
    logger.info(f"Operation: {operation}", extra={"parameters": kwargs})


def handle_error(logger: logging.Logger, error: Exception, operation: str) -> Dict[str, Any]:
    """Handle and log an error, return error response"""
    error_details = {
        "type": type(error).__name__,
        "message": str(error),
        "operation": operation,
        "traceback": traceback.format_exc()
    }

    if isinstance(error, IXPFSError):
        error_details.update(error.details)

    logger.error(
        f"Error during {operation}: {str(error)}",
        extra={"error_details": error_details},
        exc_info=True
    )

    return {
        "type": "error",
        "message": str(error),
        "details": error_details
    }
