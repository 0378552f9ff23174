"""
LinearTV - Channel scheduling and playout.

Resolves what each linear channel plays at any instant and grows channel
timelines forward from their template.
"""

__version__ = "1.0.0"
__author__ = "LinearTV Contributors"

from lineartv.config import get_config, load_config

__all__ = [
    "__version__",
    "get_config",
    "load_config",
]
