from __future__ import annotations

import hashlib

RNG_PATROL_STREAM_NAME = "rng_patrol"
RNG_HACKING_STREAM_NAME = "rng_hacking"


def derive_stream_seed(master_seed: int, stream_name: str) -> int:
    """Derive a deterministic child RNG seed from (master_seed, stream_name)."""
    digest = hashlib.sha256(f"{master_seed}:{stream_name}".encode("utf-8")).digest()
    return int.from_bytes(digest[:8], byteorder="big", signed=False)
