# path: cable-fault-map/app/utils/hashing.py

from __future__ import annotations

import hashlib
import json


def stable_json_sha256(obj) -> str:
    data = json.dumps(obj, separators=(",", ":"), sort_keys=True, default=str).encode("utf-8")
    return "sha256:" + hashlib.sha256(data).hexdigest()
