import pytest

from conftest import DST_MAC, SRC_MAC, build_datagram, build_ecat_payload, build_ethernet
from ethercat_trace.data_types import Command
from ethercat_trace.frames import (
    TruncatedInput,
    decode_datagram,
    decode_ethercat_frame,
    decode_ethernet_frame,
    decode_frame_header,
    iter_datagrams,
)

APRD_SCENARIO = bytes.fromhex("0100aabb100000000000") + bytes.fromhex("0500")


def test_ethernet_header_fields():
    buf = build_ethernet(b"\x01\x02", ethertype=0x88A4)
    eth = decode_ethernet_frame(buf)

    assert bytes(eth.dst_mac) == DST_MAC
    assert bytes(eth.src_mac) == SRC_MAC
    assert eth.ethertype == 0x88A4
    assert eth.is_ethercat
    assert bytes(eth.payload) == b"\x01\x02"


def test_ethernet_payload_is_a_view():
    buf = bytearray(build_ethernet(b"\xaa\xbb"))
    eth = decode_ethernet_frame(buf)

    buf[14] = 0x11
    assert eth.payload[0] == 0x11


def test_ethertype_is_big_endian():
    eth = decode_ethernet_frame(build_ethernet(b"", ethertype=0x0800))
    assert eth.ethertype == 0x0800
    assert not eth.is_ethercat


def test_ethernet_header_too_short():
    with pytest.raises(TruncatedInput) as excinfo:
        decode_ethernet_frame(b"\x00" * 13)
    assert excinfo.value.needed == 14
    assert excinfo.value.available == 13


def test_frame_header_bits_round_trip():
    for word in range(0x10000):
        raw = word.to_bytes(2, "little")
        assert decode_frame_header(raw).pack() == raw


def test_frame_header_fields():
    # length=0x123, reserved=1, type=1
    header = decode_frame_header(bytes([0x23, 0x19]))
    assert header.length == 0x123
    assert header.reserved == 1
    assert header.frame_type == 1


def test_frame_header_too_short():
    with pytest.raises(TruncatedInput):
        decode_frame_header(b"\x0c")


def test_aprd_scenario():
    datagram = decode_datagram(APRD_SCENARIO)

    assert datagram.command is Command.APRD
    assert datagram.index == 0
    assert datagram.address_primary == 0xBBAA
    assert datagram.address_secondary == 0x0010
    assert datagram.length == 0
    assert datagram.round_trip == 0
    assert datagram.more_follows == 0
    assert bytes(datagram.data) == b""
    assert datagram.working_counter == 5
    assert datagram.size == 12

    assert len(list(iter_datagrams(APRD_SCENARIO + b"\xff" * 12))) == 1


def test_length_word_flags_and_reserved_bits():
    raw = bytearray(build_datagram(data=b"\x01\x02\x03", round_trip=1, more_follows=1))
    # Set bits 11..13, which must not leak into length.
    raw[7] |= 0x38
    datagram = decode_datagram(bytes(raw))

    assert datagram.length == 3
    assert datagram.round_trip == 1
    assert datagram.more_follows == 1
    assert not datagram.is_last


def test_datagram_consumes_exact_size():
    payload = bytes(range(37))
    raw = build_datagram(cmd=12, data=payload, wkc=0x0203, irq=0xABCD)

    datagram = decode_datagram(raw)
    assert len(raw) == 10 + 37 + 2
    assert datagram.size == len(raw)
    assert bytes(datagram.data) == payload
    assert datagram.working_counter == 0x0203
    assert datagram.irq == 0xABCD

    with pytest.raises(TruncatedInput):
        decode_datagram(raw[:-1])


def test_datagram_at_offset():
    raw = b"\xee" * 5 + build_datagram(cmd=5, adp=0x1000, ado=0x0120, data=b"\x04\x00", wkc=1)
    datagram = decode_datagram(raw, 5)

    assert datagram.command is Command.FPWR
    assert datagram.address_primary == 0x1000
    assert datagram.address_secondary == 0x0120
    assert bytes(datagram.data) == b"\x04\x00"


def test_datagram_below_minimum_size():
    with pytest.raises(TruncatedInput) as excinfo:
        decode_datagram(b"\x01" * 11)
    assert excinfo.value.needed == 12


def test_declared_length_beyond_buffer():
    raw = build_datagram(length=100, data=b"")[:10] + b"\x00" * 50
    with pytest.raises(TruncatedInput) as excinfo:
        decode_datagram(raw)
    assert excinfo.value.needed == 112
    assert excinfo.value.available == 60


def test_unknown_command_does_not_abort():
    datagram = decode_datagram(build_datagram(cmd=0xF3, wkc=9))
    assert datagram.command is Command.UNKNOWN
    assert datagram.working_counter == 9


def test_three_datagrams_in_wire_order():
    buf = (
        build_datagram(cmd=7, index=1, data=b"\x00\x00", more_follows=1)
        + build_datagram(cmd=4, index=2, data=b"\x01", more_follows=1)
        + build_datagram(cmd=12, index=3, data=b"\x02\x03\x04")
    )
    datagrams = list(iter_datagrams(buf))

    assert [d.index for d in datagrams] == [1, 2, 3]
    assert [d.more_follows for d in datagrams] == [1, 1, 0]
    assert sum(d.size for d in datagrams) == len(buf)


def test_iterator_stops_on_flag_not_buffer_end():
    buf = build_datagram(index=9) + build_datagram(index=10)
    assert [d.index for d in iter_datagrams(buf)] == [9]


def test_iterator_is_lazy_and_truncates_mid_frame():
    buf = (
        build_datagram(index=1, data=b"\x00" * 4, more_follows=1)
        + build_datagram(index=2, length=100, more_follows=1)[:10]
        + b"\x00" * 50
    )
    it = iter_datagrams(buf)

    assert next(it).index == 1
    with pytest.raises(TruncatedInput):
        next(it)


def test_forged_more_follows_surfaces_as_truncation():
    buf = build_datagram(more_follows=1) * 4
    seen = []
    with pytest.raises(TruncatedInput):
        for datagram in iter_datagrams(buf):
            seen.append(datagram)
    assert len(seen) == 4


def test_ethercat_frame_delegates_to_datagrams():
    payload = build_ecat_payload(
        build_datagram(cmd=1, more_follows=1),
        build_datagram(cmd=2),
    )
    frame = decode_ethercat_frame(payload)

    assert frame.header.frame_type == 1
    assert frame.header.length == len(payload) - 2
    assert [d.command for d in frame.datagrams] == [Command.APRD, Command.APWR]


def test_ethercat_frame_too_short():
    with pytest.raises(TruncatedInput):
        decode_ethercat_frame(b"")
