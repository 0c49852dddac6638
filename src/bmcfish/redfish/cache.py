import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)


class ResourceCache:
    """
    Read-through cache of System, Manager and Chassis documents keyed by system ID.

    Entries live as long as the client; there is no TTL or eviction. A stale
    entry is only replaced when the caller asks for it with refresh=True or
    invalidates it.
    """
    KINDS = ('system', 'manager', 'chassis')

    def __init__(self, loader: Callable[[str, str], dict]):
        """
        Args:
            loader: Callable taking (kind, system_id) and returning the fetched document
        """
        self.loader = loader
        self._entries = {kind: {} for kind in self.KINDS}
        self._lock = threading.RLock()


    def get(self, kind: str, system_id: str, refresh: bool = False) -> dict:
        entries = self._entries_for(kind)
        with self._lock:
            if not refresh and system_id in entries:
                return entries[system_id]
            logger.debug('Loading %s document for system %s', kind, system_id)
            document = self.loader(kind, system_id)
            entries[system_id] = document
            return document


    def invalidate(self, kind: str, system_id: str) -> None:
        with self._lock:
            self._entries_for(kind).pop(system_id, None)


    def _entries_for(self, kind: str) -> dict:
        if kind not in self._entries:
            raise ValueError(f'Unknown resource kind: {kind}')
        return self._entries[kind]
