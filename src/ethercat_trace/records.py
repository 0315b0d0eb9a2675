"""CSV record output, one row per decoded datagram."""

from __future__ import annotations

import csv
from typing import TextIO

from .data_types import Command, EtherCATDatagram

CSV_COLUMNS = (
    "dst_mac",
    "src_mac",
    "cmd",
    "index",
    "adp",
    "ado",
    "length",
    "round_trip",
    "last_ind",
    "irq",
    "wkc",
    "data",
)

UNKNOWN_BLOCK_LINE = "unknown block"


def format_mac(mac: bytes | memoryview, separator: str = " ") -> str:
    return separator.join(f"{octet:02x}" for octet in bytes(mac))


def format_data(data: bytes | memoryview, separator: str = " ") -> str:
    return separator.join(f"{octet:02x}" for octet in bytes(data))


def command_name(command: Command) -> str:
    return command.name


def datagram_row(
    dst_mac: bytes | memoryview,
    src_mac: bytes | memoryview,
    datagram: EtherCATDatagram,
    *,
    mac_separator: str = " ",
    data_separator: str = " ",
) -> list[str]:
    """
    Flatten one datagram and its frame addresses into `CSV_COLUMNS` order.

    `last_ind` carries the wire more-follows bit unchanged.
    """

    return [
        format_mac(dst_mac, mac_separator),
        format_mac(src_mac, mac_separator),
        command_name(datagram.command),
        str(datagram.index),
        str(datagram.address_primary),
        str(datagram.address_secondary),
        str(datagram.length),
        str(datagram.round_trip),
        str(datagram.more_follows),
        f"{datagram.irq:x}",
        str(datagram.working_counter),
        format_data(datagram.data, data_separator),
    ]


class RecordEmitter:
    """Writes header, datagram rows and status lines straight to a text sink."""

    def __init__(
        self,
        sink: TextIO,
        *,
        mac_separator: str = " ",
        data_separator: str = " ",
    ):
        self._sink = sink
        self._writer = csv.writer(sink, lineterminator="\n")
        self.mac_separator = mac_separator
        self.data_separator = data_separator

    def write_header(self) -> None:
        self._writer.writerow(CSV_COLUMNS)

    def emit(
        self,
        dst_mac: bytes | memoryview,
        src_mac: bytes | memoryview,
        datagram: EtherCATDatagram,
    ) -> None:
        self._writer.writerow(
            datagram_row(
                dst_mac,
                src_mac,
                datagram,
                mac_separator=self.mac_separator,
                data_separator=self.data_separator,
            )
        )

    def write_unknown_block(self) -> None:
        self._sink.write(f"{UNKNOWN_BLOCK_LINE}\n")

    def write_summary(self, num_blocks: int) -> None:
        self._sink.write(f"num_blocks: {num_blocks}\n")
