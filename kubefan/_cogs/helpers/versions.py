"""
Detecting the library's own version.

The codebase does not contain the version directly: it is taken
from the installed distribution's metadata once at import time.
"""
from typing import Optional

version: Optional[str] = None

try:
    import importlib.metadata
except ImportError:
    pass
else:
    try:
        name, *_ = __name__.split('.')  # usually "kubefan", unless renamed/forked.
        version = importlib.metadata.version(name)
    except importlib.metadata.PackageNotFoundError:
        pass  # not installed, e.g. running from a source checkout.
