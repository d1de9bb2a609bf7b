"""family-vault: delegation and permission engine for family document vaults."""

from .__version__ import __version__
from .config.logging_config import setup_logging

setup_logging()

from .core import ActorContext, ErrorKind, Result  # noqa: E402

__all__ = [
    "__version__",
    "ActorContext",
    "ErrorKind",
    "Result",
]
