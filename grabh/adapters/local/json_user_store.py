"""JsonFileUserStore — keeps bot users and download counters in a JSON file."""

import json
import logging
import os
import threading
from datetime import datetime, timezone

from grabh.domain.models import ChatUser
from grabh.ports.user_store import UserStorePort

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _doc_id(user_id: int) -> str:
    return f"tg_{user_id}"


class JsonFileUserStore(UserStorePort):
    def __init__(self, path: str = "/data/users.json"):
        self._path = path
        self._lock = threading.Lock()

    def _load(self) -> dict:
        try:
            with open(self._path) as f:
                data = json.load(f)
        except FileNotFoundError:
            return {"users": {}, "totalDownloads": 0}
        except json.JSONDecodeError as e:
            logger.warning(f"Could not parse user store {self._path}: {e}")
            return {"users": {}, "totalDownloads": 0}
        data.setdefault("users", {})
        data.setdefault("totalDownloads", 0)
        return data

    def _save(self, data: dict) -> None:
        directory = os.path.dirname(os.path.abspath(self._path))
        os.makedirs(directory, exist_ok=True)
        tmp_path = f"{self._path}.tmp"
        with open(tmp_path, "w") as f:
            json.dump(data, f, indent=2)
        os.replace(tmp_path, self._path)

    def save_user(self, user: ChatUser) -> None:
        with self._lock:
            data = self._load()
            record = data["users"].setdefault(_doc_id(user.id), {})
            if not record:
                record["firstSeen"] = _now()
                record["downloadCount"] = 0
            record.update({
                "source": "telegram",
                "telegramId": user.id,
                "displayName": user.display_name,
                "username": user.username,
                "lastDownload": _now(),
            })
            self._save(data)

    def increment_user_downloads(self, user_id: int) -> None:
        with self._lock:
            data = self._load()
            record = data["users"].get(_doc_id(user_id))
            if record is None:
                logger.warning(f"Download count for unknown user {user_id} not recorded")
                return
            record["downloadCount"] = record.get("downloadCount", 0) + 1
            record["lastDownload"] = _now()
            self._save(data)

    def increment_global_downloads(self) -> None:
        with self._lock:
            data = self._load()
            data["totalDownloads"] += 1
            self._save(data)

    def global_download_count(self) -> int:
        with self._lock:
            return int(self._load()["totalDownloads"])
