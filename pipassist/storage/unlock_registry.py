"""
Unlock registry for paid modules.
Records which modules have been unlocked by a successful checkout.
"""

import json
from typing import Dict, Optional

from pipassist.exceptions import ModuleLockedError, StorageError
from pipassist.interfaces import KeyValueStoreInterface
from pipassist.models import UnlockStatus
from pipassist.utils.logging_utils import LoggerMixin

UNLOCK_KEY = "unlockedModules"


class UnlockRegistry(LoggerMixin):
    """Reads and writes the global unlock status blob."""

    def __init__(
        self,
        store: KeyValueStoreInterface,
        uses: Optional[Dict[str, int]] = None,
    ):
        self.store = store
        self.uses = uses or {"form_checker": 5, "default": 1}

    def statuses(self) -> Dict[str, UnlockStatus]:
        """Load all unlock statuses, treating unreadable data as empty."""
        try:
            raw = self.store.get(UNLOCK_KEY)
        except StorageError as e:
            self.logger.error(f"Could not read unlock status: {e}")
            return {}

        if not raw:
            return {}

        try:
            data = json.loads(raw)
        except ValueError as e:
            self.logger.error(f"Could not parse unlock status: {e}")
            return {}

        if not isinstance(data, dict):
            self.logger.error("Unlock status is not a mapping, ignoring it")
            return {}

        statuses = {}
        for module_id, entry in data.items():
            if not isinstance(entry, dict):
                continue
            uses_left = entry.get("usesLeft", 0)
            statuses[module_id] = UnlockStatus(
                unlocked=entry.get("unlocked") is True,
                uses_left=uses_left if isinstance(uses_left, int) else 0,
            )
        return statuses

    def status(self, module_id: str) -> UnlockStatus:
        return self.statuses().get(module_id, UnlockStatus())

    def is_unlocked(self, module_id: str) -> bool:
        return self.status(module_id).unlocked

    def uses_left(self, module_id: str) -> int:
        return self.status(module_id).uses_left

    def unlock(self, module_id: str, uses: Optional[int] = None) -> UnlockStatus:
        """Mark a module as unlocked with a fresh allowance of uses."""
        if uses is None:
            uses = self.uses.get(module_id, self.uses.get("default", 1))

        statuses = self.statuses()
        statuses[module_id] = UnlockStatus(unlocked=True, uses_left=uses)
        self._save(statuses)
        self.logger.info(f"Module '{module_id}' unlocked with {uses} use(s)")
        return statuses[module_id]

    def consume_use(self, module_id: str) -> int:
        """Spend one use of an unlocked module and return the remaining count."""
        statuses = self.statuses()
        status = statuses.get(module_id)
        if not status or not status.unlocked or status.uses_left <= 0:
            raise ModuleLockedError(
                f"Module '{module_id}' is locked", "Complete the checkout to unlock it"
            )

        status.uses_left -= 1
        self._save(statuses)
        return status.uses_left

    def _save(self, statuses: Dict[str, UnlockStatus]) -> None:
        payload = {
            module_id: {"unlocked": status.unlocked, "usesLeft": status.uses_left}
            for module_id, status in statuses.items()
        }
        try:
            self.store.set(UNLOCK_KEY, json.dumps(payload))
        except StorageError as e:
            self.logger.error(f"Could not save unlock status: {e}")
