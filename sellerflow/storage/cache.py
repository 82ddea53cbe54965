"""Advisory local key-value cache.

Sibling screens read ``businessId``/``companyId``, ``sellerStatus`` and
``applicationId`` without waiting on the network. The onboarding engine
writes these keys through and never reads them back to decide a step:
every decision is rebuilt from the backend.
"""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path

from sellerflow.models.common import ApiFamily, ApplicationStatus

logger = logging.getLogger(__name__)

SELLER_STATUS_KEY = "sellerStatus"
APPLICATION_ID_KEY = "applicationId"
BUSINESS_ID_KEYS: dict[ApiFamily, str] = {
    ApiFamily.BUSINESS: "businessId",
    ApiFamily.COMPANY: "companyId",
}


class KeyValueStore(ABC):
    """String key-value storage backend."""

    @abstractmethod
    def get(self, key: str) -> str | None: ...

    @abstractmethod
    def set(self, key: str, value: str) -> None: ...

    @abstractmethod
    def remove(self, *keys: str) -> None: ...


class InMemoryKeyValueStore(KeyValueStore):
    """In-memory implementation for tests."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, *keys: str) -> None:
        for key in keys:
            self._data.pop(key, None)

    def as_dict(self) -> dict[str, str]:
        return dict(self._data)


class JsonFileKeyValueStore(KeyValueStore):
    """Single JSON object on disk, rewritten on every change.

    A corrupt or unreadable file is treated as empty: the cache is only a
    latency optimisation.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    def _load(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable cache file %s: %s", self._path, exc)
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _save(self, data: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
        tmp.replace(self._path)

    def get(self, key: str) -> str | None:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def remove(self, *keys: str) -> None:
        data = self._load()
        if not any(k in data for k in keys):
            return
        for key in keys:
            data.pop(key, None)
        self._save(data)


class OnboardingCache:
    """Typed view over the three onboarding keys."""

    def __init__(self, store: KeyValueStore, family: ApiFamily = ApiFamily.BUSINESS) -> None:
        self._store = store
        self.business_id_key = BUSINESS_ID_KEYS[family]

    @property
    def business_id(self) -> str | None:
        return self._store.get(self.business_id_key)

    @property
    def application_id(self) -> str | None:
        return self._store.get(APPLICATION_ID_KEY)

    @property
    def seller_status(self) -> ApplicationStatus | None:
        raw = self._store.get(SELLER_STATUS_KEY)
        if raw is None:
            return None
        return ApplicationStatus.normalize(raw)

    def remember_business(self, business_id: str) -> None:
        self._store.set(self.business_id_key, business_id)

    def remember_application(self, application_id: str, status: ApplicationStatus) -> None:
        if application_id:
            self._store.set(APPLICATION_ID_KEY, application_id)
        self.remember_status(status)

    def remember_status(self, status: ApplicationStatus) -> None:
        if status == ApplicationStatus.NONE:
            self._store.remove(SELLER_STATUS_KEY)
        else:
            self._store.set(SELLER_STATUS_KEY, status.value)

    def forget_application(self) -> None:
        self._store.remove(APPLICATION_ID_KEY, SELLER_STATUS_KEY)

    def clear(self) -> None:
        self._store.remove(self.business_id_key, SELLER_STATUS_KEY, APPLICATION_ID_KEY)
