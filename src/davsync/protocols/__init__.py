"""
Protocols subpackage for davsync.

Re-exports the WebDAV transport and existence probe.
"""

from davsync.protocols.webdav import RemoteProbe, WebDAVTransport

__all__ = [
    "RemoteProbe",
    "WebDAVTransport",
]
