import os
import shutil
from pathlib import Path

from wasmbench.service.engine.errors import ConfigurationError


def resolve_cmd(cmd: str) -> str:
    p = Path(cmd)
    if p.is_file() or ("/" in cmd or "\\" in cmd):
        return str(p.resolve())
    found = shutil.which(cmd)
    if found:
        return found
    raise FileNotFoundError(
        f"Executable '{cmd}' not found. "
        f"Either provide a path (e.g. './wasmer') or ensure it's in PATH."
    )


def read_module_bytes(path: Path) -> bytes:
    """
    Read a whole .wasm file into memory.

    Raises:
        ConfigurationError: If the file is missing, unreadable or empty
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigurationError(f"Failed to open file: {path}")
    try:
        data = path.read_bytes()
    except OSError as e:
        raise ConfigurationError(f"Failed to read file {path}: {e}") from e
    if not data:
        raise ConfigurationError(f"Module file is empty: {path}")
    return data


def validate_cache_dir(path: Path) -> Path:
    """
    Check that a requested compilation cache directory can be used.

    Raises:
        ConfigurationError: If the path does not exist, is not a directory
                            or is not writable
    """
    path = Path(path).expanduser()
    if not path.exists():
        raise ConfigurationError(f"Compilation cache directory does not exist: {path}")
    if not path.is_dir():
        raise ConfigurationError(f"Compilation cache path is not a directory: {path}")
    if not os.access(path, os.R_OK | os.W_OK):
        raise ConfigurationError(f"Compilation cache directory is not writable: {path}")
    return path.resolve()


def delete_file(dst: Path) -> None:
    """
    Delete a file or directory if it exists.
    """
    if dst.exists() or dst.is_symlink():
        if dst.is_file() or dst.is_symlink():
            dst.unlink()
        elif dst.is_dir():
            shutil.rmtree(dst)
