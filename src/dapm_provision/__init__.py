"""dapm-provision - upload processing element templates to platform deployments."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("dapm-provision")
except PackageNotFoundError:
    __version__ = "0.0.0.dev0"  # Fallback for editable installs without metadata

__all__ = ["__version__"]
