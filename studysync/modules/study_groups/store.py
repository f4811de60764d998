import logging
from typing import Callable, List, Optional

from studysync.modules.study_groups.schemas import StoreSnapshot, StudyGroup

logger = logging.getLogger(__name__)

Subscriber = Callable[[StoreSnapshot], None]


class GroupStore:
    """Observable study group collection owned by one StudyGroupService.

    The list is only ever swapped as a whole (``replace``) or rebuilt
    (``update``); it is never mutated in place.
    """

    def __init__(self):
        self._groups: List[StudyGroup] = []
        self.loading = True
        self.error: Optional[str] = None
        self._subscribers: List[Subscriber] = []

    @property
    def groups(self) -> List[StudyGroup]:
        return list(self._groups)

    def get(self, group_id: str) -> Optional[StudyGroup]:
        return next((g for g in self._groups if g.id == group_id), None)

    def snapshot(self) -> StoreSnapshot:
        return StoreSnapshot(groups=self.groups, loading=self.loading, error=self.error)

    def replace(self, groups: List[StudyGroup], error: Optional[str] = None) -> None:
        self._groups = list(groups)
        self.error = error
        self.loading = False
        self._notify()

    def update(self, rebuild: Callable[[List[StudyGroup]], List[StudyGroup]]) -> None:
        self._groups = list(rebuild(self.groups))
        self._notify()

    def set_loading(self, loading: bool) -> None:
        self.loading = loading
        if loading:
            self.error = None
        self._notify()

    def subscribe(self, subscriber: Subscriber) -> Callable[[], None]:
        self._subscribers.append(subscriber)

        def unsubscribe():
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for subscriber in list(self._subscribers):
            try:
                subscriber(snapshot)
            except Exception as e:
                logger.error(f"Study group subscriber failed: {e}")
