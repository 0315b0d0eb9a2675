"""EtherCAT command code <-> symbolic command mapping."""

from __future__ import annotations

from .data_types import Command

_DESCRIPTIONS = {
    Command.NOP: "No Operation",
    Command.APRD: "Auto Increment Physical Read",
    Command.APWR: "Auto Increment Physical Write",
    Command.APRW: "Auto Increment Physical Read Write",
    Command.FPRD: "Configured Address Physical Read",
    Command.FPWR: "Configured Address Physical Write",
    Command.FPRW: "Configured Address Physical Read Write",
    Command.BRD: "Broadcast Read",
    Command.BWR: "Broadcast Write",
    Command.BRW: "Broadcast Read Write",
    Command.LRD: "Logical Memory Read",
    Command.LWR: "Logical Memory Write",
    Command.LRW: "Logical Memory Read Write",
    Command.ARMW: "Auto Increment Physical Read Multiple Write",
    Command.FRMW: "Configured Address Physical Read Multiple Write",
    Command.UNKNOWN: "Unknown",
}

_BY_CODE = {int(cmd): cmd for cmd in Command if cmd is not Command.UNKNOWN}


def decode_command(code: int) -> Command:
    """
    Map a raw command byte to `Command`.

    Total over every byte value: codes outside 0..14 give `Command.UNKNOWN`.
    """

    return _BY_CODE.get(code, Command.UNKNOWN)


def encode_command(command: Command) -> int:
    """Return the wire code for a named command."""

    if command is Command.UNKNOWN:
        raise ValueError("Command.UNKNOWN has no wire encoding.")
    return int(command)


def command_description(command: Command) -> str:
    return _DESCRIPTIONS[command]
