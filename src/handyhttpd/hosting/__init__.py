"""HTTP file servers hosted by the daemon, one per port.

Public API:
    HostedServer -- one listener serving several directory mounts
    ServerRegistry -- port -> HostedServer table with a last-port default
"""

from handyhttpd.hosting.registry import ServerRegistry
from handyhttpd.hosting.server import HostedServer

__all__ = ["HostedServer", "ServerRegistry"]
