"""Decoded data model for Ethernet-carried EtherCAT frames."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Iterator

ETHERTYPE_ETHERCAT = 0x88A4

# EtherCAT frame header type carrying datagrams.
ECAT_FRAME_TYPE_DATAGRAM = 0x1

ETHERNET_HEADER_SIZE = 14
ECAT_FRAME_HEADER_SIZE = 2
DATAGRAM_HEADER_SIZE = 10
WKC_SIZE = 2


class Command(IntEnum):
    """EtherCAT datagram command codes (byte 0 of each datagram)."""

    NOP = 0
    APRD = 1
    APWR = 2
    APRW = 3
    FPRD = 4
    FPWR = 5
    FPRW = 6
    BRD = 7
    BWR = 8
    BRW = 9
    LRD = 10
    LWR = 11
    LRW = 12
    ARMW = 13
    FRMW = 14
    # Catch-all for codes 15..255; carries no wire encoding.
    UNKNOWN = -1


class LinkType(IntEnum):
    """Capture link-layer types the decoder distinguishes (pcap LINKTYPE_*)."""

    ETHERNET = 1


class FrameOutcome(Enum):
    """Result of feeding one captured frame through the decoder chain."""

    DECODED = "decoded"
    TRUNCATED = "truncated"
    UNSUPPORTED_LINK_TYPE = "unsupported_link_type"
    NOT_ETHERCAT = "not_ethercat"


class BlockKind(Enum):
    """Capture container block categories seen by the decode loop."""

    SECTION_HEADER = "section_header"
    INTERFACE_DESCRIPTION = "interface_description"
    PACKET = "packet"
    OTHER = "other"


@dataclass(slots=True)
class CapturedFrame:
    """One captured link-layer frame handed over by the capture reader."""

    data: bytes
    link_type: int = LinkType.ETHERNET


@dataclass(slots=True)
class CaptureBlock:
    """
    One container block; `frame` is set only for packet blocks.

    Classic pcap records are all packet blocks.
    """

    kind: BlockKind
    frame: CapturedFrame | None = None
    block_type: int | None = None


@dataclass(slots=True)
class EthernetFrame:
    """
    Ethernet II header plus payload.

    Byte fields are views into the captured buffer, not copies.
    """

    dst_mac: memoryview
    src_mac: memoryview
    ethertype: int
    payload: memoryview

    @property
    def is_ethercat(self) -> bool:
        return self.ethertype == ETHERTYPE_ETHERCAT


@dataclass(slots=True)
class EtherCATFrameHeader:
    """2-byte EtherCAT frame header: length(11) | reserved(1) | type(4)."""

    length: int
    reserved: int
    frame_type: int

    def pack(self) -> bytes:
        value = (
            (self.length & 0x07FF)
            | ((self.reserved & 0x1) << 11)
            | ((self.frame_type & 0xF) << 12)
        )
        return value.to_bytes(2, "little")


@dataclass(slots=True)
class EtherCATFrame:
    """EtherCAT frame header with its datagrams in wire order (lazy)."""

    header: EtherCATFrameHeader
    datagrams: Iterator["EtherCATDatagram"]


@dataclass(slots=True)
class EtherCATDatagram:
    """
    One decoded EtherCAT datagram.

    ADP/ADO meaning depends on the command's addressing mode; both are kept
    as raw 16-bit values. `more_follows` is the wire bit 15 of the length
    word as-is: 1 means another datagram follows in the same frame.
    """

    command: Command
    index: int
    address_primary: int
    address_secondary: int
    length: int
    round_trip: int
    more_follows: int
    irq: int
    data: memoryview
    working_counter: int

    @property
    def size(self) -> int:
        """Wire size: header, `length` data bytes, working counter."""
        return DATAGRAM_HEADER_SIZE + self.length + WKC_SIZE

    @property
    def is_last(self) -> bool:
        return self.more_follows == 0
