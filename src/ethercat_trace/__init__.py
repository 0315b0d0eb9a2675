"""Offline EtherCAT datagram decoder for pcap/pcapng captures."""

from .commands import command_description, decode_command, encode_command
from .config import ConfigError, DecoderConfig, load_config
from .data_types import (
    ETHERTYPE_ETHERCAT,
    BlockKind,
    CaptureBlock,
    CapturedFrame,
    Command,
    EtherCATDatagram,
    EtherCATFrame,
    EtherCATFrameHeader,
    EthernetFrame,
    FrameOutcome,
    LinkType,
)
from .frames import (
    DecodeError,
    TruncatedInput,
    decode_datagram,
    decode_ethercat_frame,
    decode_ethernet_frame,
    decode_frame_header,
    iter_datagrams,
)
from .pipeline import DecodeStats, TraceDecoder
from .records import CSV_COLUMNS, RecordEmitter

__all__ = [
    "ETHERTYPE_ETHERCAT",
    "Command",
    "BlockKind",
    "CaptureBlock",
    "LinkType",
    "FrameOutcome",
    "CapturedFrame",
    "EthernetFrame",
    "EtherCATFrameHeader",
    "EtherCATFrame",
    "EtherCATDatagram",
    "decode_command",
    "encode_command",
    "command_description",
    "DecodeError",
    "TruncatedInput",
    "decode_ethernet_frame",
    "decode_frame_header",
    "decode_ethercat_frame",
    "decode_datagram",
    "iter_datagrams",
    "CSV_COLUMNS",
    "RecordEmitter",
    "DecodeStats",
    "TraceDecoder",
    "ConfigError",
    "DecoderConfig",
    "load_config",
]
