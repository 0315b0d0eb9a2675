"""pcap / pcapng capture input built on dpkt."""

from __future__ import annotations

import logging
from pathlib import Path
from struct import Struct
from typing import BinaryIO, Iterable, Iterator

import dpkt
from dpkt.pcapng import (
    PCAPNG_BT_EPB,
    PCAPNG_BT_IDB,
    PCAPNG_BT_PB,
    PCAPNG_BT_SHB,
    EnhancedPacketBlock,
    EnhancedPacketBlockLE,
    InterfaceDescriptionBlock,
    InterfaceDescriptionBlockLE,
    PacketBlock,
    PacketBlockLE,
    SectionHeaderBlock,
    SectionHeaderBlockLE,
)

from .data_types import BlockKind, CaptureBlock, CapturedFrame

logger = logging.getLogger(__name__)

_PCAPNG_MAGIC = b"\x0a\x0d\x0d\x0a"
_PCAP_MAGICS = {
    b"\xd4\xc3\xb2\xa1",  # little-endian, microseconds
    b"\xa1\xb2\xc3\xd4",  # big-endian, microseconds
    b"\x4d\x3c\xb2\xa1",  # little-endian, nanoseconds
    b"\xa1\xb2\x3c\x4d",  # big-endian, nanoseconds
}

# SHB byte-order magic 0x1A2B3C4D as stored on disk.
_BOM_LE = b"\x4d\x3c\x2b\x1a"
_BOM_BE = b"\x1a\x2b\x3c\x4d"

# block type(u32) | block total length(u32)
_BLOCK_HEAD_LE = Struct("<II")
_BLOCK_HEAD_BE = Struct(">II")

# Smallest block: type, length, trailing length copy.
_MIN_BLOCK_LEN = 12


class CaptureFormatError(RuntimeError):
    """Raised when a file is not a readable pcap or pcapng capture."""


def _is_little_endian(bom: bytes) -> bool:
    if bom == _BOM_LE:
        return True
    if bom == _BOM_BE:
        return False
    raise CaptureFormatError(f"Unknown pcapng byte-order magic: {bom.hex() or '<empty>'}")


class PcapngBlockReader:
    """
    Walks every block of a pcapng stream.

    Interface link types are collected per section: the list is reset at each
    Section Header Block and extended at each Interface Description Block.
    Packet blocks are tagged with the link type of their interface id.
    """

    def __init__(self, fileobj: BinaryIO):
        self._f = fileobj
        self._le = True
        self.if_linktypes: list[int] = []

        head = fileobj.read(12)
        fileobj.seek(0)
        if len(head) < 12 or head[:4] != _PCAPNG_MAGIC:
            raise CaptureFormatError("pcapng stream must start with a Section Header Block")
        _is_little_endian(head[8:12])

    def __iter__(self) -> Iterator[CaptureBlock]:
        while True:
            head = self._f.read(8)
            if not head:
                return
            if len(head) < 8:
                raise CaptureFormatError(f"Truncated pcapng block header ({len(head)} bytes)")

            if head[:4] == _PCAPNG_MAGIC:
                bom = self._f.read(4)
                self._le = _is_little_endian(bom)
                head += bom

            head_struct = _BLOCK_HEAD_LE if self._le else _BLOCK_HEAD_BE
            blk_type, blk_len = head_struct.unpack_from(head, 0)
            if blk_len < _MIN_BLOCK_LEN or blk_len % 4:
                raise CaptureFormatError(f"Invalid pcapng block length {blk_len}")

            buf = head + self._f.read(blk_len - len(head))
            if len(buf) < blk_len:
                raise CaptureFormatError(
                    f"Truncated pcapng block: need {blk_len} bytes, have {len(buf)}"
                )

            try:
                block = self._classify(blk_type, buf)
            except dpkt.UnpackError as exc:
                raise CaptureFormatError(
                    f"Malformed pcapng block type 0x{blk_type:08x}: {exc}"
                ) from exc
            yield block

    def _classify(self, blk_type: int, buf: bytes) -> CaptureBlock:
        if blk_type == PCAPNG_BT_SHB:
            (SectionHeaderBlockLE if self._le else SectionHeaderBlock)(buf)
            self.if_linktypes = []
            return CaptureBlock(BlockKind.SECTION_HEADER, block_type=blk_type)

        if blk_type == PCAPNG_BT_IDB:
            idb = (InterfaceDescriptionBlockLE if self._le else InterfaceDescriptionBlock)(buf)
            self.if_linktypes.append(int(idb.linktype))
            return CaptureBlock(BlockKind.INTERFACE_DESCRIPTION, block_type=blk_type)

        if blk_type == PCAPNG_BT_EPB:
            pkt = (EnhancedPacketBlockLE if self._le else EnhancedPacketBlock)(buf)
            return self._packet(blk_type, pkt.iface_id, pkt.pkt_data)

        if blk_type == PCAPNG_BT_PB:
            pkt = (PacketBlockLE if self._le else PacketBlock)(buf)
            return self._packet(blk_type, pkt.iface_id, pkt.pkt_data)

        return CaptureBlock(BlockKind.OTHER, block_type=blk_type)

    def _packet(self, blk_type: int, iface_id: int, data: bytes) -> CaptureBlock:
        if iface_id >= len(self.if_linktypes):
            logger.warning(
                "Packet block references interface %d; section declares %d",
                iface_id,
                len(self.if_linktypes),
            )
            return CaptureBlock(BlockKind.OTHER, block_type=blk_type)

        frame = CapturedFrame(data=bytes(data), link_type=self.if_linktypes[iface_id])
        return CaptureBlock(BlockKind.PACKET, frame=frame, block_type=blk_type)


def _iter_pcap(reader) -> Iterator[CaptureBlock]:
    link_type = int(reader.datalink())
    for _ts, buf in reader:
        yield CaptureBlock(BlockKind.PACKET, frame=CapturedFrame(data=buf, link_type=link_type))


def open_capture(fileobj: BinaryIO) -> Iterable[CaptureBlock]:
    """Return a block source matching the file's magic number."""

    magic = fileobj.read(4)
    fileobj.seek(0)

    if magic == _PCAPNG_MAGIC:
        return PcapngBlockReader(fileobj)
    if magic in _PCAP_MAGICS:
        return _iter_pcap(dpkt.pcap.Reader(fileobj))
    raise CaptureFormatError(f"Unrecognised capture magic: {magic.hex() or '<empty>'}")


class CaptureFile:
    """
    An opened capture file iterating `CaptureBlock`s.

    Open and header errors are raised from the constructor, before any output
    is written. Use as a context manager so the file is closed on every path.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._fh = self.path.open("rb")
        try:
            self._blocks = open_capture(self._fh)
        except (ValueError, dpkt.Error) as exc:
            self._fh.close()
            raise CaptureFormatError(f"Invalid capture file '{path}': {exc}") from exc
        except CaptureFormatError:
            self._fh.close()
            raise

    @property
    def closed(self) -> bool:
        return self._fh.closed

    def __iter__(self) -> Iterator[CaptureBlock]:
        return iter(self._blocks)

    def close(self) -> None:
        self._fh.close()

    def __enter__(self) -> "CaptureFile":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
