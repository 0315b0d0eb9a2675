"""Command line entry point: capture file in, datagram CSV out."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Iterable, Sequence, TextIO

from .capture import CaptureFile, CaptureFormatError
from .config import ConfigError, DecoderConfig, normalize_log_level, load_config
from .data_types import CaptureBlock
from .pipeline import DecodeStats, TraceDecoder
from .records import RecordEmitter


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Decode EtherCAT datagrams from a pcap/pcapng capture into CSV."
    )
    parser.add_argument("-f", "--file", required=True, help="Capture file to decode.")
    parser.add_argument(
        "-o",
        "--output",
        default="-",
        help="CSV output path ('-' for stdout).",
    )
    parser.add_argument("--config", default=None, help="Optional JSON config file.")
    parser.add_argument("--mac-sep", default=None, help="Separator between MAC octets.")
    parser.add_argument("--data-sep", default=None, help="Separator between data bytes.")
    parser.add_argument(
        "--no-header",
        action="store_true",
        help="Do not write the CSV header line.",
    )
    parser.add_argument("--log-level", default=None, help="Logging level for stderr.")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> DecoderConfig:
    cfg = load_config(args.config) if args.config else DecoderConfig()
    if args.mac_sep is not None:
        cfg.mac_separator = args.mac_sep
    if args.data_sep is not None:
        cfg.data_separator = args.data_sep
    if args.no_header:
        cfg.write_header = False
    if args.log_level is not None:
        cfg.log_level = normalize_log_level(args.log_level)
    return cfg


def run(cfg: DecoderConfig, blocks: Iterable[CaptureBlock], out: TextIO) -> DecodeStats:
    emitter = RecordEmitter(
        out,
        mac_separator=cfg.mac_separator,
        data_separator=cfg.data_separator,
    )
    decoder = TraceDecoder(
        emitter,
        write_header=cfg.write_header,
        write_summary=cfg.write_summary,
    )
    return decoder.run(blocks)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        cfg = build_config(args)
    except (ConfigError, OSError) as exc:
        print(f"Config error: {exc}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=cfg.log_level,
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        capture = CaptureFile(args.file)
    except CaptureFormatError as exc:
        print(f"Capture error: {exc}", file=sys.stderr)
        return 2
    except OSError as exc:
        print(f"Cannot open file {args.file} : {exc}", file=sys.stderr)
        return 1

    with capture:
        if args.output == "-":
            out = sys.stdout
        else:
            try:
                out = open(args.output, "w", encoding="utf-8", newline="")
            except OSError as exc:
                print(f"Cannot open file {args.output} : {exc}", file=sys.stderr)
                return 1

        try:
            run(cfg, capture, out)
        except CaptureFormatError as exc:
            print(f"Capture error: {exc}", file=sys.stderr)
            return 2
        finally:
            if out is not sys.stdout:
                out.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
