from types import TracebackType
from typing import (
    Any,
    Awaitable,
    Callable,
    Optional,
    TypeVar,
    Union,
)

T = TypeVar("T")

Action = Callable[[], Awaitable[T]]
DebugLogger = Callable[[str], None]
RetryPredicate = Callable[[BaseException], bool]
ErrorHook = Callable[
    [BaseException, Optional[TracebackType], int],
    Union[Awaitable[Any], None],
]
