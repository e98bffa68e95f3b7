from .record import (
    AddressFamily,
    ConnectionRecord,
    Kind,
    OsType,
    ProcessRecord,
    Protocol,
    Record,
)
from .snapshot import PollSnapshot

__all__ = [
    "AddressFamily",
    "ConnectionRecord",
    "Kind",
    "OsType",
    "PollSnapshot",
    "ProcessRecord",
    "Protocol",
    "Record",
]
