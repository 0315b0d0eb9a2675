"""Byte-level decoders: Ethernet header -> EtherCAT frame -> datagrams."""

from __future__ import annotations

from struct import Struct
from typing import Iterator

from .commands import decode_command
from .data_types import (
    DATAGRAM_HEADER_SIZE,
    ECAT_FRAME_HEADER_SIZE,
    ETHERNET_HEADER_SIZE,
    WKC_SIZE,
    EtherCATDatagram,
    EtherCATFrame,
    EtherCATFrameHeader,
    EthernetFrame,
)

# Ethertype is network byte order; everything inside EtherCAT is little-endian.
_ETHERTYPE_STRUCT = Struct(">H")

# len(11) | reserved(1) | type(4)
_ECAT_HEADER_STRUCT = Struct("<H")

# cmd(u8) idx(u8) adp(u16) ado(u16) len|r|c|m(u16) irq(u16)
_DATAGRAM_HEADER_STRUCT = Struct("<BBHHHH")

_WKC_STRUCT = Struct("<H")

_LENGTH_MASK = 0x07FF


class DecodeError(ValueError):
    """Base class for malformed capture data."""


class TruncatedInput(DecodeError):
    """Raised when a decode step needs more bytes than the buffer holds."""

    def __init__(self, what: str, needed: int, available: int):
        super().__init__(
            f"Truncated {what}: need {needed} bytes, have {available}"
        )
        self.what = what
        self.needed = needed
        self.available = available


def _view(buf: bytes | bytearray | memoryview) -> memoryview:
    return buf if isinstance(buf, memoryview) else memoryview(buf)


def decode_ethernet_frame(buf: bytes | bytearray | memoryview) -> EthernetFrame:
    """Split an Ethernet II frame into addresses, ethertype and payload."""

    view = _view(buf)
    if len(view) < ETHERNET_HEADER_SIZE:
        raise TruncatedInput("Ethernet header", ETHERNET_HEADER_SIZE, len(view))

    (ethertype,) = _ETHERTYPE_STRUCT.unpack_from(view, 12)
    return EthernetFrame(
        dst_mac=view[0:6],
        src_mac=view[6:12],
        ethertype=ethertype,
        payload=view[ETHERNET_HEADER_SIZE:],
    )


def decode_frame_header(buf: bytes | bytearray | memoryview) -> EtherCATFrameHeader:
    view = _view(buf)
    if len(view) < ECAT_FRAME_HEADER_SIZE:
        raise TruncatedInput(
            "EtherCAT frame header", ECAT_FRAME_HEADER_SIZE, len(view)
        )

    (word,) = _ECAT_HEADER_STRUCT.unpack_from(view, 0)
    return EtherCATFrameHeader(
        length=word & _LENGTH_MASK,
        reserved=(word >> 11) & 0x1,
        frame_type=(word >> 12) & 0xF,
    )


def decode_ethercat_frame(payload: bytes | bytearray | memoryview) -> EtherCATFrame:
    """
    Decode the EtherCAT frame header from an Ethernet payload.

    Datagrams are decoded lazily from the bytes after the header, so records
    can be emitted while the frame is still being walked. The header `length`
    is kept for display and is not cross-checked against the datagrams.

    Datagrams are walked for every `frame_type`, not only
    `ECAT_FRAME_TYPE_DATAGRAM`; callers decide what to do with other types.
    """

    view = _view(payload)
    header = decode_frame_header(view)
    return EtherCATFrame(
        header=header,
        datagrams=iter_datagrams(view[ECAT_FRAME_HEADER_SIZE:]),
    )


def decode_datagram(
    buf: bytes | bytearray | memoryview, offset: int = 0
) -> EtherCATDatagram:
    """
    Decode one datagram starting at `offset`.

    Length word (bytes 6-7, little-endian):
    - bits 0..10: data length
    - bits 11..13: reserved, discarded
    - bit 14: round trip (circulating frame)
    - bit 15: more datagrams follow
    """

    view = _view(buf)
    available = len(view) - offset
    minimum = DATAGRAM_HEADER_SIZE + WKC_SIZE
    if available < minimum:
        raise TruncatedInput("datagram header", minimum, max(available, 0))

    (
        cmd,
        index,
        adp,
        ado,
        len_word,
        irq,
    ) = _DATAGRAM_HEADER_STRUCT.unpack_from(view, offset)

    length = len_word & _LENGTH_MASK
    needed = DATAGRAM_HEADER_SIZE + length + WKC_SIZE
    if available < needed:
        raise TruncatedInput("datagram", needed, available)

    data_start = offset + DATAGRAM_HEADER_SIZE
    data_end = data_start + length
    (wkc,) = _WKC_STRUCT.unpack_from(view, data_end)

    return EtherCATDatagram(
        command=decode_command(cmd),
        index=index,
        address_primary=adp,
        address_secondary=ado,
        length=length,
        round_trip=(len_word >> 14) & 0x1,
        more_follows=(len_word >> 15) & 0x1,
        irq=irq,
        data=view[data_start:data_end],
        working_counter=wkc,
    )


def iter_datagrams(buf: bytes | bytearray | memoryview) -> Iterator[EtherCATDatagram]:
    """
    Yield datagrams in wire order until one has its more-follows bit clear.

    There is no datagram count limit; the flag is the only stop condition.
    A buffer that ends before the flagged last datagram raises
    `TruncatedInput` after the datagrams decoded so far have been yielded.
    """

    view = _view(buf)
    cursor = 0
    while True:
        datagram = decode_datagram(view, cursor)
        yield datagram

        step = datagram.size
        assert step >= DATAGRAM_HEADER_SIZE + WKC_SIZE, "datagram cursor did not advance"
        cursor += step

        if datagram.is_last:
            return
