"""Authentication daemon keeping one valid identity provider token on disk.

Exposed names:
    RefreshLoop: The token lifecycle state machine.
    load_config: Resolves the daemon configuration.
"""

from .config import DaemonConfig, load_config
from .daemon import RefreshLoop

__version__ = "0.1.0"

__all__ = ["DaemonConfig", "RefreshLoop", "load_config", "__version__"]
