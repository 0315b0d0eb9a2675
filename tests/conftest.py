"""Shared frame builders for decoder tests."""

from struct import Struct

import pytest

_DATAGRAM_HEADER = Struct("<BBHHHH")
_U16_LE = Struct("<H")

DST_MAC = bytes.fromhex("ffffffffffff")
SRC_MAC = bytes.fromhex("0215a1b2c3d4")


def build_datagram(
    cmd=1,
    index=0,
    adp=0,
    ado=0,
    data=b"",
    more_follows=0,
    round_trip=0,
    irq=0,
    wkc=0,
    length=None,
):
    """Encode one datagram; `length` overrides the declared data length."""
    declared = len(data) if length is None else length
    len_word = (declared & 0x07FF) | (round_trip << 14) | (more_follows << 15)
    return (
        _DATAGRAM_HEADER.pack(cmd, index, adp, ado, len_word, irq)
        + bytes(data)
        + _U16_LE.pack(wkc)
    )


def build_ecat_payload(*datagrams, frame_type=1, reserved=0):
    body = b"".join(datagrams)
    header = (len(body) & 0x07FF) | (reserved << 11) | (frame_type << 12)
    return _U16_LE.pack(header) + body


def build_ethernet(payload, ethertype=0x88A4, dst=DST_MAC, src=SRC_MAC):
    return dst + src + ethertype.to_bytes(2, "big") + payload


@pytest.fixture
def three_datagram_frame():
    return build_ethernet(
        build_ecat_payload(
            build_datagram(cmd=7, index=1, data=b"\x00\x00", more_follows=1, wkc=3),
            build_datagram(cmd=4, index=2, adp=0x1001, ado=0x0130, data=b"\x08\x00", more_follows=1, wkc=1),
            build_datagram(cmd=12, index=3, adp=0x0000, ado=0x0100, data=b"\xde\xad\xbe\xef", wkc=3),
        )
    )
