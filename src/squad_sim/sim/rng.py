from __future__ import annotations

import hashlib
from random import Random


def derive_seed(base_seed: int, *, mission_id: str, stream: str) -> int:
    payload = f"{base_seed}|{mission_id}|{stream}".encode("utf-8")
    digest = hashlib.blake2b(payload, digest_size=8).digest()
    return int.from_bytes(digest, "big")


def mission_rng(base_seed: int, mission_id: str, stream: str = "skirmish") -> Random:
    return Random(derive_seed(base_seed, mission_id=mission_id, stream=stream))
