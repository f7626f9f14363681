"""
Wallet whitelist.

Only whitelisted addresses may start authentication. The file-backed
whitelist re-reads its source periodically so it can be edited without
a restart. A missing or unreadable file fails closed (empty set).
"""

import json
import logging
import threading
from typing import FrozenSet, Iterable, Optional

from .addresses import is_valid_wallet_address
from .config import CachedConfig

logger = logging.getLogger(__name__)


def _clean(addresses: Iterable[str], source: str) -> FrozenSet[str]:
    valid = set()
    for address in addresses:
        if isinstance(address, str) and is_valid_wallet_address(address.strip()):
            valid.add(address.strip())
        else:
            logger.warning("Skipping invalid whitelist entry from %s: %r", source, address)
    return frozenset(valid)


class Whitelist:
    """Static set of permitted wallet addresses."""

    def __init__(self, addresses: Iterable[str] = ()):
        self._addresses = _clean(addresses, "static")

    def addresses(self) -> FrozenSet[str]:
        return self._addresses

    def __contains__(self, address: object) -> bool:
        return address in self.addresses()

    def __len__(self) -> int:
        return len(self.addresses())


class FileWhitelist(Whitelist):
    """
    Whitelist loaded from a JSON file, merged with static extras.

    Accepted file shapes: {"addresses": [...]} or a bare list.
    """

    def __init__(self, path: str, extra: Iterable[str] = (), ttl_seconds: int = 60):
        super().__init__(extra)
        self._path = path
        self._loader = CachedConfig(ttl_seconds=ttl_seconds)
        self._lock = threading.Lock()
        self._last_data: Optional[object] = None
        self._merged: FrozenSet[str] = self._addresses

    def _load(self) -> Optional[object]:
        try:
            return self._loader.get_json(self._path)
        except FileNotFoundError:
            return None
        except (json.JSONDecodeError, OSError) as e:
            logger.error("Failed to load whitelist %s: %s", self._path, e)
            return None

    def addresses(self) -> FrozenSet[str]:
        data = self._load()
        with self._lock:
            if data is None:
                if self._last_data is not None:
                    logger.warning("Whitelist file %s unavailable, using static entries only", self._path)
                self._last_data = None
                self._merged = self._addresses
            elif data is not self._last_data:
                entries = data.get("addresses", []) if isinstance(data, dict) else data
                if not isinstance(entries, list):
                    logger.error("Whitelist file %s has no address list", self._path)
                    entries = []
                self._merged = self._addresses | _clean(entries, self._path)
                self._last_data = data
                logger.info("Loaded whitelist from %s (%d addresses)", self._path, len(self._merged))
            return self._merged

    def reload(self) -> int:
        """Force a reload of the backing file. Returns the new size."""
        self._loader.invalidate(self._path)
        return len(self)
