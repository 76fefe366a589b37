from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")

# Error codes shared by the external collaborators
CLASSIFICATION_ERROR = "classification_error"
DELIVERY_ERROR = "delivery_error"
PLATFORM_REJECTED = "platform_rejected"
PROFILE_ERROR = "profile_error"
TIMEOUT = "timeout"


@dataclass
class Result(Generic[T]):
    """Outcome of a call to the NLU service or the Graph API."""

    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_code: Optional[str] = None

    @staticmethod
    def success(value: T) -> "Result[T]":
        return Result(ok=True, value=value)

    @staticmethod
    def failure(error: str, code: str = "unknown") -> "Result[T]":
        return Result(ok=False, error=error, error_code=code)

    def unwrap_or(self, default: T) -> T:
        return self.value if self.ok else default

    @property
    def timed_out(self) -> bool:
        return not self.ok and self.error_code == TIMEOUT
