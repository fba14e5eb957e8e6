"""
Hook registry letting third-party code observe or adjust rewritten records.

Filters run before a record is written and may change the pending changes;
actions run after the write. Both receive ``(pending, original, provider)``
and run synchronously. Exceptions raised by a callback propagate.
"""

from collections import defaultdict
from typing import Any, Callable, Dict, List, Tuple

PROFILE_DATA = 'profile_data'
PROFILE_UPDATED = 'profile_updated'
ANNOTATION_DATA = 'annotation_data'
ANNOTATION_UPDATED = 'annotation_updated'

HOOK_NAMES = (PROFILE_DATA, PROFILE_UPDATED, ANNOTATION_DATA, ANNOTATION_UPDATED)

Callback = Callable[..., Any]


class HookRegistry:
    """Named filter and action callbacks, ordered by priority."""

    def __init__(self):
        self._callbacks: Dict[str, List[Tuple[int, int, Callback]]] = defaultdict(list)
        self._counter = 0

    def _add(self, hook: str, callback: Callback, priority: int) -> None:
        if hook not in HOOK_NAMES:
            raise ValueError(f"Unknown hook '{hook}'. Must be one of {list(HOOK_NAMES)}")
        self._counter += 1
        self._callbacks[hook].append((priority, self._counter, callback))
        self._callbacks[hook].sort(key=lambda entry: entry[:2])

    def add_filter(self, hook: str, callback: Callback, priority: int = 10) -> None:
        """
        Register a pre-write callback.

        The callback may return new pending changes, or mutate them in place
        and return None.
        """
        self._add(hook, callback, priority)

    def add_action(self, hook: str, callback: Callback, priority: int = 10) -> None:
        """Register a post-write callback; its return value is ignored."""
        self._add(hook, callback, priority)

    def apply_filters(self, hook: str, pending: Dict[str, Any], original: Any, provider: Any) -> Dict[str, Any]:
        for _, _, callback in self._callbacks.get(hook, []):
            returned = callback(pending, original, provider)
            if returned is not None:
                pending = returned
        return pending

    def do_action(self, hook: str, pending: Dict[str, Any], original: Any, provider: Any) -> None:
        for _, _, callback in self._callbacks.get(hook, []):
            callback(pending, original, provider)
