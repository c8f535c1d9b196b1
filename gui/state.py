from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from jsonschema import Draft202012Validator, ValidationError

from twin_core.models import GraphDataset

logger = logging.getLogger(__name__)

_ID = {"type": ["string", "number"]}
_ENDPOINT = {
    "anyOf": [
        _ID,
        {"type": "object", "required": ["id"], "properties": {"id": _ID}},
    ]
}

DATASET_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["nodes", "links"],
    "properties": {
        "nodes": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["id"],
                "properties": {
                    "id": _ID,
                    "type": {"type": "string"},
                    "label": {"type": ["string", "number"]},
                    "stressLevel": {"type": ["number", "null"]},
                    "metadata": {"type": "object"},
                },
            },
        },
        "links": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["source", "target"],
                "properties": {
                    "source": _ENDPOINT,
                    "target": _ENDPOINT,
                    "weight": {"type": ["number", "null"]},
                    "influenceType": {"type": ["string", "null"]},
                },
            },
        },
    },
}

Draft202012Validator.check_schema(DATASET_SCHEMA)
DATASET_VALIDATOR = Draft202012Validator(DATASET_SCHEMA)


class DatasetState:
    """
    Loads the dataset JSON once and re-reads it only when the file changes.

    Anything unusable at this boundary (missing file, bad JSON, wrong shape)
    degrades to an empty dataset with a logged warning; it never raises into
    the UI.
    """

    def __init__(self, dataset_path: Path):
        self.dataset_path = Path(dataset_path)
        self._dataset: Optional[GraphDataset] = None
        self._last_mtime: float = 0.0
        self.loaded = False
        self.last_error: Optional[str] = None

    def _fallback(self, reason: str, mtime: float) -> GraphDataset:
        logger.warning("dataset-fallback", extra={"path": str(self.dataset_path), "reason": reason})
        self.last_error = reason
        self._dataset = GraphDataset.empty()
        self._last_mtime = mtime
        self.loaded = True
        return self._dataset

    def load(self, force: bool = False) -> GraphDataset:
        p = self.dataset_path
        mtime = p.stat().st_mtime if p.exists() else 0.0
        if self._dataset is not None and not force and mtime <= self._last_mtime:
            return self._dataset

        if not p.exists():
            return self._fallback("missing", 0.0)

        try:
            raw = p.read_text(encoding="utf-8")
            data = json.loads(raw) if raw.strip() else None
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            return self._fallback(f"unreadable: {exc}", mtime)

        try:
            DATASET_VALIDATOR.validate(data)
        except ValidationError as exc:
            return self._fallback(f"invalid: {exc.message}", mtime)

        try:
            dataset = GraphDataset.from_dict(data)
        except (KeyError, ValueError, TypeError) as exc:
            return self._fallback(f"invalid: {exc}", mtime)

        meta = dataset.meta
        if meta["dangling_links"]:
            logger.warning("dataset-dangling-links", extra=meta)
        logger.info("dataset-loaded", extra={"path": str(p), **meta})
        self._dataset = dataset
        self._last_mtime = mtime
        self.loaded = True
        self.last_error = None
        return dataset

    @property
    def dataset(self) -> GraphDataset:
        return self.load()

    def errors(self, data: Any) -> List[str]:
        return [e.message for e in DATASET_VALIDATOR.iter_errors(data)]

    def to_dict(self) -> Dict[str, Any]:
        dataset = self.load()
        return {"path": str(self.dataset_path), "meta": dataset.meta, "error": self.last_error}
