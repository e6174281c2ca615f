"""handyhttpd -- serve local directories over HTTP without babysitting a server.

The first invocation becomes a background daemon that owns a local
control socket. Every later invocation forwards its command (add a
directory, remove it, list, quit) to that daemon instead of starting
another server. The daemon can host any number of ports, each serving
several directories under distinct URL prefixes.
"""

__version__ = "0.1.0"
