"""Application version, read once from pyproject.toml (tomllib, Python 3.11+)."""

import tomllib
from pathlib import Path

_PYPROJECT = Path(__file__).resolve().parent.parent / "pyproject.toml"


def get_version() -> str:
    """Return the ``[project].version`` string, or "unknown" outside a checkout."""
    try:
        with open(_PYPROJECT, "rb") as f:
            return tomllib.load(f)["project"]["version"]
    except (OSError, KeyError, tomllib.TOMLDecodeError):
        return "unknown"


__version__: str = get_version()
