"""oneliner: shell one-liners from natural language, with a risk check before they run."""
from importlib.metadata import PackageNotFoundError, version as _pkg_version

try:
    __version__ = _pkg_version("oneliner-cli")
except PackageNotFoundError:
    __version__ = "0.1.0"
