# expense_splitter/store.py
"""
Group persistence.

A group is saved as one JSON record under the key ``expenses_<group id>``:

    {"people": [...], "expenses": [...], "lastUpdated": "2024-01-01T00:00:00+00:00"}

The store only loads and saves; balances are never stored. Two writers
saving the same group simply overwrite each other.
"""

import json
import logging
import os
import re
import tempfile
from datetime import datetime, timezone

from expense_splitter.errors import SplitterError, StoreError, ValidationError
from expense_splitter.group import GroupState

logger = logging.getLogger(__name__)

GROUP_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


def record_key(group_id):
    return f"expenses_{group_id}"


def encode_record(state):
    record = state.to_dict()
    record["lastUpdated"] = datetime.now(timezone.utc).isoformat()
    return json.dumps(record)


def decode_record(key, raw):
    try:
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError("record is not an object")
        return GroupState.from_dict(data)
    except (ValueError, TypeError, SplitterError) as e:
        raise StoreError("Stored group is unreadable", {"key": key, "reason": str(e)})


class GroupStore:
    """Base class for group persistence backends."""

    def load(self, group_id):
        """Return the saved GroupState, or None for an unknown group."""
        raise NotImplementedError

    def save(self, group_id, state):
        raise NotImplementedError


class MemoryGroupStore(GroupStore):
    """Keeps serialized records in a dict. Used for tests and single-process dev."""

    def __init__(self):
        self._records = {}

    def load(self, group_id):
        key = record_key(group_id)
        raw = self._records.get(key)
        if raw is None:
            logger.debug("No record for %s", key)
            return None
        return decode_record(key, raw)

    def save(self, group_id, state):
        key = record_key(group_id)
        self._records[key] = encode_record(state)
        logger.debug("Saved %s (%d people, %d expenses)", key, len(state.roster), len(state.expenses))


class JsonFileGroupStore(GroupStore):
    """One JSON file per group inside a directory."""

    def __init__(self, directory):
        self.directory = os.path.abspath(directory)
        os.makedirs(self.directory, exist_ok=True)

    def _path(self, group_id):
        if not isinstance(group_id, str) or not GROUP_ID_PATTERN.match(group_id):
            raise ValidationError("Invalid group id", {"group": group_id})
        return os.path.join(self.directory, record_key(group_id) + ".json")

    def load(self, group_id):
        path = self._path(group_id)
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = f.read()
        except FileNotFoundError:
            logger.debug("No record at %s", path)
            return None
        except OSError as e:
            logger.error("Failed to read %s: %s", path, e)
            raise StoreError("Could not read group", {"group": group_id})
        return decode_record(record_key(group_id), raw)

    def save(self, group_id, state):
        path = self._path(group_id)
        payload = encode_record(state)

        # Write to a temp file and swap it in so readers never see half a record
        fd, tmp_path = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_path, path)
        except OSError as e:
            logger.exception("Failed to save %s", path)
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise StoreError("Could not save group", {"group": group_id, "reason": str(e)})

        logger.debug("Saved %s", path)


def create_store(backend, directory=None):
    if backend == "memory":
        return MemoryGroupStore()
    if backend == "file":
        return JsonFileGroupStore(directory or "data")
    raise ValueError(f"Unknown store backend: {backend}")
