"""Control channel between handyhttpd invocations and the daemon.

Public API:
    try_bind_control_channel -- elect this process daemon or client
    CommandDispatcher -- serialized application of mount commands
    CommandServer -- daemon side of the channel
    CommandForwarder -- client side of the channel
"""

from handyhttpd.control.channel import ClientRole, DaemonRole, try_bind_control_channel
from handyhttpd.control.dispatcher import CommandDispatcher
from handyhttpd.control.forwarder import CommandForwarder
from handyhttpd.control.server import CommandServer

__all__ = [
    "ClientRole",
    "CommandDispatcher",
    "CommandForwarder",
    "CommandServer",
    "DaemonRole",
    "try_bind_control_channel",
]
