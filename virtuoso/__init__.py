"""Virtuoso — a 17-key virtual piano with melody recording and playback."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("virtuoso")
except PackageNotFoundError:
    # Dev environment without installed metadata — read pyproject.toml directly
    try:
        import tomllib
        from pathlib import Path

        _toml = Path(__file__).resolve().parent.parent / "pyproject.toml"
        with open(_toml, "rb") as f:
            __version__ = tomllib.load(f)["project"]["version"]
    except (ImportError, OSError, KeyError):
        __version__ = "0.0.0-dev"
