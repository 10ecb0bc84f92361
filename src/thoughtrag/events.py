"""Change publishing for thought status updates."""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable

from thoughtrag.models import ThoughtChange

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[ThoughtChange], None]
"""Callback invoked for every published change a subscriber is scoped to.

Example:
    def on_change(change: ThoughtChange) -> None:
        print(f"{change.thought_id}: {change.embedding_status.value}")
"""


class ChangePublisher(ABC):
    """Transport for status changes, published after every status write."""

    @abstractmethod
    def publish(self, change: ThoughtChange) -> None:
        """Deliver a change. Must not raise for subscriber-side failures."""
        ...


class NullPublisher(ChangePublisher):
    """Publisher that drops every change."""

    def publish(self, change: ThoughtChange) -> None:
        return None


class ChangeBus(ChangePublisher):
    """In-process fan-out of changes to subscribers, keyed by team.

    A subscriber sees a change only when the change's team is in the team set
    it subscribed with. A subscriber raising does not stop delivery to the
    others.

    Example:
        bus = ChangeBus()
        unsubscribe = bus.subscribe(["team-a"], on_change)
        ...
        unsubscribe()
    """

    def __init__(self) -> None:
        self._subscribers: dict[int, tuple[frozenset[str], ChangeCallback]] = {}
        self._next_token = 0

    def subscribe(self, team_ids: Iterable[str], callback: ChangeCallback) -> Callable[[], None]:
        """Register *callback* for changes in *team_ids*.

        Returns:
            A function that removes the subscription. Calling it twice is a no-op.
        """
        token = self._next_token
        self._next_token += 1
        self._subscribers[token] = (frozenset(team_ids), callback)

        def unsubscribe() -> None:
            self._subscribers.pop(token, None)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, change: ThoughtChange) -> None:
        for team_ids, callback in list(self._subscribers.values()):
            if change.team_id is None or change.team_id not in team_ids:
                continue
            try:
                callback(change)
            except Exception:
                logger.exception("Change subscriber failed for thought %s", change.thought_id)
