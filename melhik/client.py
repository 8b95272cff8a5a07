# melhik/client.py
"""
Reference implementation of the mobile side of the sync protocol.

The device keeps three id-keyed tables and one scalar watermark. Every feed
response is merged with insert-or-replace semantics (the server is the only
writer, so whatever it sent wins) and only then is the watermark moved to the
response's `syncTimestamp`. Replaying a response is harmless: the same upserts
produce the same state.
"""
from __future__ import annotations

import datetime as dt
import json
import logging
import os
from dataclasses import dataclass
from typing import Dict, Optional

import httpx

logger = logging.getLogger(__name__)

FULL_SYNC = "0"

_EPOCH = dt.datetime(1970, 1, 1, tzinfo=dt.timezone.utc)


@dataclass
class MergeResult:
    religions: int = 0
    topics: int = 0
    topic_details: int = 0
    skipped: int = 0

    @property
    def applied(self) -> int:
        return self.religions + self.topics + self.topic_details


@dataclass
class UpdateCheck:
    has_updates: bool
    last_updated: Optional[str]
    server_time: Optional[str]
    version: Optional[int]


def _iso_to_millis(value: str) -> int:
    # "2024-05-01T10:00:00.123Z"; fromisoformat only takes "Z" from 3.11 on
    stamp = dt.datetime.fromisoformat(value.replace("Z", "+00:00"))
    if stamp.tzinfo is None:
        stamp = stamp.replace(tzinfo=dt.timezone.utc)
    return (stamp - _EPOCH) // dt.timedelta(milliseconds=1)


class LocalContentStore:
    """In-memory device store, optionally persisted as one JSON document."""

    def __init__(self, path: Optional[str] = None):
        self.path = path
        self.religions: Dict[int, dict] = {}
        self.topics: Dict[int, dict] = {}
        self.topic_details: Dict[int, dict] = {}
        self.last_sync: str = FULL_SYNC
        self.content_version: int = 0

    # --- persistence ---
    @classmethod
    def load(cls, path: str) -> "LocalContentStore":
        store = cls(path)
        if not os.path.exists(path):
            return store
        with open(path, "r", encoding="utf-8") as f:
            doc = json.load(f)
        store.religions = {int(k): v for k, v in doc.get("religions", {}).items()}
        store.topics = {int(k): v for k, v in doc.get("topics", {}).items()}
        store.topic_details = {int(k): v for k, v in doc.get("topicDetails", {}).items()}
        store.last_sync = str(doc.get("lastSync", FULL_SYNC))
        store.content_version = int(doc.get("contentVersion", 0))
        return store

    def save(self) -> None:
        if not self.path:
            return
        doc = {
            "religions": self.religions,
            "topics": self.topics,
            "topicDetails": self.topic_details,
            "lastSync": self.last_sync,
            "contentVersion": self.content_version,
        }
        tmp = f"{self.path}.tmp"
        try:
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(doc, f, ensure_ascii=False)
            os.replace(tmp, self.path)
        except Exception:
            if os.path.exists(tmp):
                os.remove(tmp)
            raise

    def clear(self) -> None:
        self.religions.clear()
        self.topics.clear()
        self.topic_details.clear()
        self.last_sync = FULL_SYNC
        self.content_version = 0

    # --- merge ---
    def apply(self, data: dict) -> MergeResult:
        """
        Upsert one feed `data` block. Rows are applied parents first; a topic
        whose religion, or a detail whose topic, is unknown locally is skipped
        and logged.
        """
        result = MergeResult()

        for religion in data.get("religions") or []:
            self.religions[int(religion["id"])] = dict(religion)
            result.religions += 1

        for topic in data.get("topics") or []:
            if int(topic["religionId"]) not in self.religions:
                logger.warning(
                    "Skipping topic %s: religion %s is not in the local store",
                    topic["id"], topic["religionId"],
                )
                result.skipped += 1
                continue
            self.topics[int(topic["id"])] = dict(topic)
            result.topics += 1

        for detail in data.get("topicDetails") or []:
            if int(detail["topicId"]) not in self.topics:
                logger.warning(
                    "Skipping topic detail %s: topic %s is not in the local store",
                    detail["id"], detail["topicId"],
                )
                result.skipped += 1
                continue
            self.topic_details[int(detail["id"])] = dict(detail)
            result.topic_details += 1

        return result

    def apply_response(self, body: dict) -> MergeResult:
        """Merge a full /api/sync/download body, then advance the watermark."""
        if not body.get("success"):
            raise ValueError("Feed response was not successful")
        data = body.get("data") or {}
        result = self.apply(data)

        # watermark moves only after the rows are in
        stamp = body.get("syncTimestamp", data.get("syncTimestamp"))
        if stamp is None:
            raise ValueError("Feed response carries no syncTimestamp")
        self.last_sync = str(stamp)
        if data.get("version") is not None:
            self.content_version = int(data["version"])
        self.save()
        return result


class SyncClient:
    """
    Pulls the feed over HTTP and merges it into a LocalContentStore.
    Errors propagate; the caller retries with the same (unchanged) watermark.
    """

    def __init__(
        self,
        store: LocalContentStore,
        *,
        base_url: str = "",
        http: Optional[httpx.Client] = None,
        app_version: str = "1.0.0",
        timeout: float = 30.0,
    ):
        self.store = store
        self.app_version = app_version
        self.http = http or httpx.Client(base_url=base_url, timeout=timeout)

    def _download(self, last_sync: str) -> dict:
        resp = self.http.get(
            "/api/sync/download",
            params={"lastSync": last_sync, "version": self.app_version},
        )
        resp.raise_for_status()
        return resp.json()

    def sync(self) -> MergeResult:
        last_sync = self.store.last_sync or FULL_SYNC
        body = self._download(last_sync)
        result = self.store.apply_response(body)
        logger.info(
            "%s sync merged %s rows (%s skipped); lastSync %s -> %s",
            (body.get("data") or {}).get("syncType"), result.applied, result.skipped,
            last_sync, self.store.last_sync,
        )
        return result

    def full_sync(self) -> MergeResult:
        """Start over: drop local rows and pull the whole snapshot."""
        body = self._download(FULL_SYNC)
        self.store.clear()
        return self.store.apply_response(body)

    def check_for_updates(self) -> UpdateCheck:
        """
        Ask /api/sync/status whether published content moved past our
        watermark, without downloading anything.
        """
        resp = self.http.get("/api/sync/status")
        resp.raise_for_status()
        data = resp.json().get("data") or {}
        last_updated = data.get("lastUpdated")

        if self.store.last_sync in ("", FULL_SYNC) or not last_updated:
            has_updates = True
        else:
            # lastUpdated is floored to the millisecond, so a row written later
            # in the watermark's own millisecond compares equal
            has_updates = _iso_to_millis(last_updated) >= int(self.store.last_sync)

        logger.info(
            "Update check: lastSync=%s serverLastUpdated=%s hasUpdates=%s",
            self.store.last_sync, last_updated, has_updates,
        )
        return UpdateCheck(
            has_updates=has_updates,
            last_updated=last_updated,
            server_time=data.get("serverTime"),
            version=data.get("version"),
        )
