"""
Compilation cache for AOT-compiled modules.

Entries are serialized native artifacts keyed by the SHA-256 of the module
bytes plus a caller-supplied engine fingerprint, since serialized code is only
valid for the engine build that produced it. With a directory the entries
persist across processes as `<key>.cwasm` files; without one they live in
memory for the lifetime of the cache object.
"""
import hashlib
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional

from wasmbench.util.log_config import setup_logger

logger = setup_logger(__name__)

ARTIFACT_SUFFIX = ".cwasm"


class CompilationCache:

    def __init__(self, directory: Optional[Path] = None):
        self.directory = Path(directory) if directory is not None else None
        self._memory: Dict[str, bytes] = {}
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    @property
    def persistent(self) -> bool:
        return self.directory is not None

    @staticmethod
    def key_for(module_bytes: bytes, fingerprint: str = "") -> str:
        digest = hashlib.sha256()
        digest.update(fingerprint.encode("utf-8"))
        digest.update(b"\0")
        digest.update(module_bytes)
        return digest.hexdigest()

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}{ARTIFACT_SUFFIX}"

    def get(self, key: str) -> Optional[bytes]:
        if self.persistent:
            path = self._path(key)
            data = path.read_bytes() if path.is_file() else None
        else:
            data = self._memory.get(key)

        if data is None:
            self.misses += 1
            logger.debug(f"Compilation cache miss: {key[:12]}")
        else:
            self.hits += 1
            logger.debug(f"Compilation cache hit: {key[:12]}")
        return data

    def put(self, key: str, artifact: bytes) -> None:
        if not self.persistent:
            self._memory[key] = bytes(artifact)
            return

        # Write to a sibling temp file first so readers never see a partial artifact
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(artifact)
            os.replace(tmp_name, self._path(key))
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
        logger.debug(f"Stored compiled artifact {self._path(key).name}")

    def evict(self, key: str) -> None:
        """Drop an entry that could not be used, e.g. from another engine build."""
        self.evictions += 1
        if self.persistent:
            path = self._path(key)
            if path.exists():
                path.unlink()
        else:
            self._memory.pop(key, None)

    def stats(self) -> Dict[str, int]:
        return {"hits": self.hits, "misses": self.misses, "evictions": self.evictions}

    def __len__(self) -> int:
        if self.persistent:
            return sum(1 for _ in self.directory.glob(f"*{ARTIFACT_SUFFIX}"))
        return len(self._memory)
