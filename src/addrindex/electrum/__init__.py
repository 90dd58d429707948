"""
Electrum protocol access: the reconnecting channel and cached scripthash queries.
"""

from addrindex.electrum.channel import (
    ChannelEvent,
    ChannelEventType,
    ElectrumChannel,
    ElectrumChannelError,
)
from addrindex.electrum.queries import ScriptHashQueries, ScriptHashSource

__all__ = [
    "ChannelEvent",
    "ChannelEventType",
    "ElectrumChannel",
    "ElectrumChannelError",
    "ScriptHashQueries",
    "ScriptHashSource",
]
