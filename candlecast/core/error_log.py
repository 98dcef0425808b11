import datetime as dt
import traceback
from typing import Any, Dict, List, Optional, Union

from candlecast.core.log import get_logger
from candlecast.core.state_store import StateStore

ERRORS_KEY = "errors"
DEFAULT_CAPACITY = 20

logger = get_logger(__name__)


class ErrorLog:
    """Keeps the most recent ``capacity`` errors, oldest dropped first."""

    def __init__(self, store: StateStore, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._store = store
        self.capacity = capacity

    def entries(self) -> List[Dict[str, Any]]:
        return list(self._store.get(ERRORS_KEY, []))

    def record(
        self,
        error: Union[BaseException, str],
        now: Optional[dt.datetime] = None,
        **context: Any,
    ) -> Dict[str, Any]:
        if isinstance(error, BaseException):
            entry = {
                "message": str(error) or type(error).__name__,
                "kind": type(error).__name__,
                "stack": "".join(traceback.format_exception(type(error), error, error.__traceback__)),
            }
        else:
            entry = {"message": error, "kind": "message", "stack": "No stack trace available"}
        entry["timestamp"] = (now or dt.datetime.now(dt.timezone.utc)).isoformat()
        if context:
            entry["context"] = {k: str(v) for k, v in context.items()}

        errors = self.entries()
        errors.append(entry)
        errors = errors[-self.capacity:]
        self._store.set(ERRORS_KEY, errors)
        logger.warning("error_logged", kind=entry["kind"], message=entry["message"], stored=len(errors))
        return entry

    def clear(self) -> None:
        self._store.delete(ERRORS_KEY)
