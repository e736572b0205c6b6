"""
Request state tracking for interactive views.

Each view owns one RequestTracker. Every fetch begins a new request; a
response is applied only if it belongs to the newest request, so a slow
response that arrives after a newer one was issued is discarded instead of
overwriting fresher display state.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Generic, List, Optional, TypeVar

T = TypeVar('T')


class RequestStatus(Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    FAILURE = "failure"
    SUPERSEDED = "superseded"


@dataclass(frozen=True)
class RequestState(Generic[T]):
    status: RequestStatus = RequestStatus.IDLE
    request_id: int = 0
    params: Optional[Any] = None
    data: Optional[T] = None
    error: Optional[BaseException] = None

    @property
    def is_loading(self) -> bool:
        return self.status is RequestStatus.LOADING

    @property
    def is_settled(self) -> bool:
        return self.status in (RequestStatus.SUCCESS, RequestStatus.FAILURE)


class RequestTracker(Generic[T]):
    """Holds the current RequestState for a single view."""

    def __init__(self):
        self._state: RequestState[T] = RequestState()
        self._next_id = 1
        self.superseded: List[RequestState[T]] = []

    @property
    def state(self) -> RequestState[T]:
        return self._state

    def begin(self, params: Any = None) -> int:
        """Start a request and return its id; an in-flight request is superseded."""
        if self._state.is_loading:
            self.superseded.append(replace(self._state, status=RequestStatus.SUPERSEDED))
        request_id = self._next_id
        self._next_id += 1
        # Keep the last settled data visible while loading
        self._state = RequestState(
            status=RequestStatus.LOADING,
            request_id=request_id,
            params=params,
            data=self._state.data,
        )
        return request_id

    def is_current(self, request_id: int) -> bool:
        return request_id == self._state.request_id and self._state.is_loading

    def resolve(self, request_id: int, data: T) -> bool:
        """Apply a successful response. Returns False if the response is stale."""
        if not self.is_current(request_id):
            return False
        self._state = replace(self._state, status=RequestStatus.SUCCESS, data=data, error=None)
        return True

    def fail(self, request_id: int, error: BaseException) -> bool:
        """Apply a failed response. Returns False if the response is stale."""
        if not self.is_current(request_id):
            return False
        self._state = replace(self._state, status=RequestStatus.FAILURE, error=error)
        return True

    def reset(self):
        self._state = RequestState()
