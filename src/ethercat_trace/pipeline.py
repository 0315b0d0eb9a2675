"""Block-by-block decode loop from capture blocks to emitted records."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Iterable

from .data_types import (
    ECAT_FRAME_TYPE_DATAGRAM,
    BlockKind,
    CaptureBlock,
    CapturedFrame,
    FrameOutcome,
    LinkType,
)
from .frames import TruncatedInput, decode_ethercat_frame, decode_ethernet_frame
from .records import RecordEmitter

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DecodeStats:
    """Counters accumulated over one trace."""

    blocks: int = 0
    datagrams: int = 0
    truncated: int = 0
    unknown_blocks: int = 0
    non_ethercat: int = 0


class TraceDecoder:
    """
    Runs each captured frame through the decoder chain and emits records.

    Frames are handled strictly one after another; each datagram is written
    as soon as it is decoded.
    """

    def __init__(
        self,
        emitter: RecordEmitter,
        *,
        write_header: bool = True,
        write_summary: bool = True,
    ):
        self._emitter = emitter
        self._write_header = write_header
        self._write_summary = write_summary
        self._stats = DecodeStats()

    @property
    def stats(self) -> DecodeStats:
        return replace(self._stats)

    def process_frame(self, frame: CapturedFrame) -> FrameOutcome:
        self._stats.blocks += 1
        block_no = self._stats.blocks

        if frame.link_type != LinkType.ETHERNET:
            logger.debug("Block %d: unsupported link type %s", block_no, frame.link_type)
            self._stats.unknown_blocks += 1
            self._emitter.write_unknown_block()
            return FrameOutcome.UNSUPPORTED_LINK_TYPE

        try:
            eth = decode_ethernet_frame(frame.data)
            if not eth.is_ethercat:
                logger.debug(
                    "Block %d: ethertype 0x%04x is not EtherCAT, skipped",
                    block_no,
                    eth.ethertype,
                )
                self._stats.non_ethercat += 1
                return FrameOutcome.NOT_ETHERCAT

            ecat = decode_ethercat_frame(eth.payload)
            if ecat.header.frame_type != ECAT_FRAME_TYPE_DATAGRAM:
                logger.debug(
                    "Block %d: EtherCAT frame type %d, decoding as datagrams",
                    block_no,
                    ecat.header.frame_type,
                )
            for datagram in ecat.datagrams:
                self._emitter.emit(eth.dst_mac, eth.src_mac, datagram)
                self._stats.datagrams += 1
        except TruncatedInput as exc:
            logger.warning("Block %d: %s; rest of frame dropped", block_no, exc)
            self._stats.truncated += 1
            return FrameOutcome.TRUNCATED

        return FrameOutcome.DECODED

    def process_block(self, block: CaptureBlock) -> FrameOutcome | None:
        """
        Count one container block and decode it when it carries a packet.

        Section header and interface description blocks are counted only;
        any other non-packet block is reported as an unknown block.
        """

        if block.kind is BlockKind.PACKET and block.frame is not None:
            return self.process_frame(block.frame)

        self._stats.blocks += 1
        if block.kind is BlockKind.OTHER:
            logger.debug(
                "Block %d: unclassified block type %s",
                self._stats.blocks,
                block.block_type,
            )
            self._stats.unknown_blocks += 1
            self._emitter.write_unknown_block()
        return None

    def run(self, blocks: Iterable[CaptureBlock]) -> DecodeStats:
        """Decode every block until the source is exhausted."""

        if self._write_header:
            self._emitter.write_header()

        for block in blocks:
            self.process_block(block)

        stats = self.stats
        if self._write_summary:
            self._emitter.write_summary(stats.blocks)
        logger.info(
            "Decoded %d datagrams from %d blocks (truncated=%d unknown=%d non_ethercat=%d)",
            stats.datagrams,
            stats.blocks,
            stats.truncated,
            stats.unknown_blocks,
            stats.non_ethercat,
        )
        return stats
