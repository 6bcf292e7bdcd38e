"""Decoder for the Acorn Tube host/parasite register protocol."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from enum import IntEnum
from typing import ClassVar, Optional, TextIO

_BUFFER_SIZE = 512


class _R1(IntEnum):
    IDLE = 0
    EVENT_0 = 1
    EVENT_1 = 2
    EVENT_2 = 3


class _R2(IntEnum):
    IDLE = 0
    OSCLI_0 = 1
    OSBYTELO_0 = 2
    OSBYTELO_1 = 3
    OSBYTEHI_0 = 4
    OSBYTEHI_1 = 5
    OSBYTEHI_2 = 6
    OSWORD_0 = 7
    OSWORD_1 = 8
    OSWORD_2 = 9
    OSWORD_3 = 10
    OSWORD0_0 = 11
    OSWORD0_1 = 12
    OSWORD0_2 = 13
    OSWORD0_3 = 14
    OSWORD0_4 = 15
    OSWORD_FB_0 = 16
    OSWORD_FB_1 = 17
    OSWORD_FB_2 = 18
    OSWORD_FB_IO = 19
    OSWORD_FB_FDC = 20
    OSWORD_FF_0 = 21
    OSWORD_FF_1 = 22
    OSWORD_FF_2 = 23
    OSWORD_FF_3 = 24
    OSWORD_FF_4 = 25
    OSWORD_FF_5 = 26
    OSARGS_0 = 27
    OSARGS_1 = 28
    OSARGS_2 = 29
    OSARGS_3 = 30
    OSBGET_0 = 31
    OSBPUT_0 = 32
    OSBPUT_1 = 33
    OSFIND_0 = 34
    OSFIND_1 = 35
    OSFIND_2 = 36
    OSFILE_0 = 37
    OSFILE_1 = 38
    OSFILE_2 = 39
    OSGBPB_0 = 40
    OSGBPB_1 = 41


class _R4(IntEnum):
    IDLE = 0
    ERROR_0 = 1
    XFER_0 = 2
    XFER_1 = 3
    XFER_2 = 4
    XFER_3 = 5
    XFER_4 = 6
    XFER_5 = 7
    XFER_6 = 8


class _Resp(IntEnum):
    IDLE = 0
    OSRDCH_0 = 1
    OSRDCH_1 = 2
    OSCLI_0 = 3
    OSBYTELO_0 = 4
    OSBYTEHI_0 = 5
    OSBYTEHI_1 = 6
    OSBYTEHI_2 = 7
    OSWORD_0 = 8
    OSWORD0_0 = 9
    OSWORD0_1 = 10
    OSARGS_0 = 11
    OSARGS_1 = 12
    OSBGET_0 = 13
    OSBGET_1 = 14
    OSBPUT_0 = 15
    OSFIND_0 = 16
    OSFILE_0 = 17
    OSFILE_1 = 18
    OSGBPB_0 = 19
    OSGBPB_1 = 20
    OSGBPB_2 = 21
    RESET_0 = 22
    ERROR_0 = 23
    ERROR_1 = 24
    ERROR_2 = 25


# Commands on R2 from the parasite that lead straight to a new state.
_R2_COMMANDS = {
    0x02: _R2.OSCLI_0,
    0x04: _R2.OSBYTELO_0,
    0x06: _R2.OSBYTEHI_0,
    0x08: _R2.OSWORD_0,
    0x0A: _R2.OSWORD0_0,
    0x0C: _R2.OSARGS_0,
    0x0E: _R2.OSBGET_0,
    0x10: _R2.OSBPUT_0,
    0x12: _R2.OSFIND_0,
    0x14: _R2.OSFILE_0,
    0x16: _R2.OSGBPB_0,
}

# Floppy disc controller command names, by the top nibble of the command byte.
_FDC_COMMANDS = {
    0: "Restore",
    1: "Seek",
    2: "Step",
    3: "Step",
    4: "Step in",
    5: "Step in",
    6: "Step out",
    7: "Step out",
    8: "Read sector",
    9: "Read sector",
    10: "Write sector",
    11: "Write sector",
    12: "Read address",
    13: "Read track",
    14: "Write track",
    15: "Force interrupt",
}


@dataclass
class _Registers:
    a: int = -1
    x: int = -1
    y: int = -1
    cy: int = -1


def _printable(data: int) -> str:
    return chr(data) if 32 <= data < 127 else "."


def _signed32(value: int) -> int:
    return value - (1 << 32) if value >= (1 << 31) else value


def _cstr(buffer: bytearray, start: int) -> bytes:
    end = buffer.find(0, start)
    return bytes(buffer[start:] if end < 0 else buffer[start:end])


def _block(buffer: bytearray, start: int, length: int) -> Optional[bytes]:
    if length <= 0:
        return None
    return bytes(buffer[start:start + length])


class TubeDecoder:
    """Turns a stream of Tube register accesses into a readable call log.

    ``read`` takes parasite-initiated accesses, ``write`` host-initiated ones.
    Set ``decode_x86_osword`` on a subclass to decode the OSWORD &FB and &FF
    extensions used by the 80x86 co-processor.
    """

    decode_x86_osword: ClassVar[bool] = False

    def __init__(self, out: Optional[TextIO] = None) -> None:
        self.out = out
        self._r1_state = _R1.IDLE
        self._r1 = _Registers()

        self._resp_state = _Resp.IDLE
        self._resp_length = 0
        self._h2p = _Registers()
        self._h2p_errno = -1
        self._h2p_buffer = bytearray(_BUFFER_SIZE)
        self._h2p_index = 0

        self._r4_state = _R4.IDLE
        self._r4_action = -1
        self._r4_id = -1
        self._r4_addr = 0
        self._r4_sync = -1

        self._p2h = _Registers()
        self._in_length = 0
        self._r2_state = _R2.IDLE
        self._p2h_buffer = bytearray(_BUFFER_SIZE)
        self._p2h_index = 0

    # -- output helpers -------------------------------------------------

    def _emit(self, text: str) -> None:
        (sys.stdout if self.out is None else self.out).write(text)

    def _call(
        self,
        call: str,
        cy: int = -1,
        a: int = -1,
        x: int = -1,
        y: int = -1,
        name: Optional[bytes] = None,
        block: Optional[bytes] = None,
    ) -> None:
        parts = [f"{call}: "]
        for label, value in (("Cy", cy), ("A", a), ("X", x), ("Y", y)):
            if value >= 0:
                parts.append(f"{label}={value:02x} ")
        if name is not None:
            parts.append(f"STRING={name.decode('latin-1')} ")
        if block:
            parts.append("BLOCK=" + "".join(f"{b:02x} " for b in block))
        parts.append("\n")
        self._emit("".join(parts))

    def _expect_response(self, state: _Resp, length: int) -> None:
        if self._resp_state != _Resp.IDLE:
            self._emit(
                f"Warning response state conflict: current={int(self._resp_state)} next={int(state)}\n"
            )
        self._resp_state = state
        self._resp_length = length & 0xFFFFFFFF

    def _store(self, buffer: bytearray, index: int, data: int, label: str, state: int) -> int:
        buffer[index] = data
        if index < len(buffer) - 1:
            return index + 1
        self._emit(f"{label} buffer overflow!, state = {int(state)}\n")
        return index

    # -- host to parasite ----------------------------------------------

    def _r1_h2p(self, data: int) -> None:
        regs = self._r1
        match self._r1_state:
            case _R1.IDLE:
                if data & 0x80:
                    self._emit(f"R1: Escape: flag={data:02x}\n")
                else:
                    self._r1_state = _R1.EVENT_0
            case _R1.EVENT_0:
                regs.y = data
                self._r1_state = _R1.EVENT_1
            case _R1.EVENT_1:
                regs.x = data
                self._r1_state = _R1.EVENT_2
            case _R1.EVENT_2:
                regs.a = data
                self._emit(f"R1: Event: A={regs.a:02x} X={regs.x:02x} Y={regs.y:02x}\n")
                self._r1_state = _R1.IDLE

    def _r2_h2p(self, data: int) -> None:
        buf = self._h2p_buffer
        self._h2p_index = self._store(buf, self._h2p_index, data, "Response", self._resp_state)
        index = self._h2p_index
        regs = self._h2p
        length = self._resp_length
        match self._resp_state:
            case _Resp.IDLE:
                self._emit(f"Unexpected data recived in IDLE response state: {data:02x}\n")
            case _Resp.OSRDCH_0:
                regs.cy = data
                self._resp_state = _Resp.OSRDCH_1
            case _Resp.OSRDCH_1:
                regs.a = data
                self._call("R2: OSRDCH response", cy=regs.cy, a=regs.a)
                self._resp_state = _Resp.IDLE
            case _Resp.OSCLI_0:
                self._emit(f"R2: OSCLI response: {data:02x}\n")
                self._resp_state = _Resp.IDLE
            case _Resp.OSBYTELO_0:
                regs.x = data
                self._call("R2: OSBYTE response", x=regs.x)
                self._resp_state = _Resp.IDLE
            case _Resp.OSBYTEHI_0:
                regs.cy = data
                self._resp_state = _Resp.OSBYTEHI_1
            case _Resp.OSBYTEHI_1:
                regs.y = data
                self._resp_state = _Resp.OSBYTEHI_2
            case _Resp.OSBYTEHI_2:
                regs.x = data
                self._call("R2: OSBYTE response", cy=regs.cy, x=regs.x, y=regs.y)
                self._resp_state = _Resp.IDLE
            case _Resp.OSWORD_0:
                if index == length:
                    self._call("R2: OSWORD response", block=_block(buf, 0, _signed32(length)))
                    self._resp_state = _Resp.IDLE
            case _Resp.OSWORD0_0:
                if data & 0x80:
                    self._emit(f"R2: OSWORD0 response: {data:02x} (escape)\n")
                self._resp_state = _Resp.IDLE
            case _Resp.OSWORD0_1:
                if data == 0x0D:
                    buf[index - 1] = 0
                    self._call("R2: OSWORD0 response", name=_cstr(buf, 1))
                    self._resp_state = _Resp.IDLE
            case _Resp.OSARGS_0:
                regs.a = data
                self._resp_state = _Resp.OSARGS_1
            case _Resp.OSARGS_1:
                if index == length + 1:
                    self._call("R2: OSARGS response", block=_block(buf, 1, _signed32(length)))
                    self._resp_state = _Resp.IDLE
            case _Resp.OSBGET_0:
                regs.cy = data
                self._resp_state = _Resp.OSBGET_1
            case _Resp.OSBGET_1:
                regs.a = data
                self._call("R2: OSSBGET response", cy=regs.cy, a=regs.a)
                self._resp_state = _Resp.IDLE
            case _Resp.OSBPUT_0:
                self._emit(f"R2: OSBPUT response: {data:02x}\n")
                self._resp_state = _Resp.IDLE
            case _Resp.OSFIND_0:
                self._emit(f"R2: OSFIND response: {data:02x}\n")
                self._resp_state = _Resp.IDLE
            case _Resp.OSFILE_0:
                regs.a = data
                self._resp_state = _Resp.OSFILE_1
            case _Resp.OSFILE_1:
                if index == length + 1:
                    self._call("R2: OSFILE response", a=regs.a, block=_block(buf, 1, _signed32(length)))
                    self._resp_state = _Resp.IDLE
            case _Resp.OSGBPB_0:
                if index == length:
                    self._resp_state = _Resp.OSGBPB_1
            case _Resp.OSGBPB_1:
                regs.cy = data
                self._resp_state = _Resp.OSGBPB_1
            case _Resp.OSGBPB_2:
                regs.a = data
                self._call(
                    "R2: OSGBPB response", cy=regs.cy, a=regs.a, block=_block(buf, 1, _signed32(length))
                )
                self._resp_state = _Resp.IDLE
            case _Resp.RESET_0:
                pass
            case _Resp.ERROR_0:
                self._resp_state = _Resp.ERROR_1
            case _Resp.ERROR_1:
                self._h2p_errno = data
                self._resp_state = _Resp.ERROR_1
            case _Resp.ERROR_2:
                if data == 0x00:
                    message = _cstr(buf, 2).decode("latin-1")
                    self._emit(f"R2: Error response: errno={self._h2p_errno} message={message}\n")
                    self._resp_state = _Resp.IDLE
        if self._resp_state == _Resp.IDLE:
            self._h2p_index = 0

    def _r4_h2p(self, data: int) -> None:
        match self._r4_state:
            case _R4.IDLE:
                if data == 0xFF:
                    # An error follows on R2.
                    self._expect_response(_Resp.ERROR_0, -1)
                elif data < 0x08:
                    self._r4_action = data
                    self._r4_state = _R4.XFER_0
                else:
                    self._emit(f"R4: illegal transfer type: {data:02x}\n")
            case _R4.XFER_0:
                self._r4_id = data
                if self._r4_action == 5:
                    self._emit(f"R4: Transfer: Action={self._r4_action:02x} ID={self._r4_id:02x}\n")
                    self._r4_state = _R4.IDLE
                else:
                    self._r4_state = _R4.XFER_1
            case _R4.XFER_1:
                self._r4_addr = data
                self._r4_state = _R4.XFER_2
            case _R4.XFER_2 | _R4.XFER_3 | _R4.XFER_4:
                self._r4_addr = ((self._r4_addr << 8) | data) & 0xFFFFFFFF
                self._r4_state = _R4(self._r4_state + 1)
            case _R4.XFER_5:
                self._r4_sync = data
                self._emit(
                    f"R4: Transfer: Action={self._r4_action:02x} ID={self._r4_id:02x} "
                    f"Addr={self._r4_addr:08x} Sync={self._r4_sync:02x}\n"
                )
                self._r4_state = _R4.IDLE

    # -- parasite to host ----------------------------------------------

    def _r2_p2h(self, data: int) -> None:
        buf = self._p2h_buffer
        self._p2h_index = self._store(buf, self._p2h_index, data, "Request", self._r2_state)
        index = self._p2h_index
        regs = self._p2h
        match self._r2_state:
            case _R2.IDLE:
                if data == 0x00:
                    self._call("R2: OSRDCH")
                    self._expect_response(_Resp.OSRDCH_0, 2)
                elif data in _R2_COMMANDS:
                    self._r2_state = _R2_COMMANDS[data]
                else:
                    self._emit(f"Illegal R2 tube command {data:02x}\n")

            case _R2.OSCLI_0:
                if data == 0x0D:
                    buf[index - 1] = 0
                    self._call("R2: OSCLI", name=_cstr(buf, 1))
                    self._r2_state = _R2.IDLE
                    self._expect_response(_Resp.OSCLI_0, 1)

            case _R2.OSBYTELO_0:
                regs.x = data
                self._r2_state = _R2.OSBYTELO_1
            case _R2.OSBYTELO_1:
                regs.a = data
                self._call("R2: OSBYTE", a=regs.a, x=regs.x)
                self._r2_state = _R2.IDLE
                self._expect_response(_Resp.OSBYTELO_0, 1)

            case _R2.OSBYTEHI_0:
                regs.x = data
                self._r2_state = _R2.OSBYTEHI_1
            case _R2.OSBYTEHI_1:
                regs.y = data
                self._r2_state = _R2.OSBYTEHI_2
            case _R2.OSBYTEHI_2:
                regs.a = data
                self._call("R2: OSBYTE", a=regs.a, x=regs.x, y=regs.y)
                self._expect_response(_Resp.OSBYTEHI_0, 3)
                self._r2_state = _R2.IDLE

            case _R2.OSWORD_0:
                regs.a = data
                if self.decode_x86_osword and regs.a == 0xFB:
                    self._r2_state = _R2.OSWORD_FB_0
                elif self.decode_x86_osword and regs.a == 0xFF:
                    self._r2_state = _R2.OSWORD_FF_0
                else:
                    self._r2_state = _R2.OSWORD_1
            case _R2.OSWORD_1:
                # OSWORD &FC sends a zero input length but carries two bytes.
                self._in_length = 2 if regs.a == 0xFC else data
                if self._in_length == 0:
                    self._r2_state = _R2.OSWORD_3
                    self._call("R2: OSWORD", a=regs.a, block=_block(buf, 3, self._in_length))
                else:
                    self._r2_state = _R2.OSWORD_2
            case _R2.OSWORD_2:
                if index == self._in_length + 3:
                    self._call("R2: OSWORD", a=regs.a, block=_block(buf, 3, self._in_length))
                    self._r2_state = _R2.OSWORD_3
            case _R2.OSWORD_3:
                if data > 0:
                    self._expect_response(_Resp.OSWORD_0, data)
                self._r2_state = _R2.IDLE

            case _R2.OSWORD0_0 | _R2.OSWORD0_1 | _R2.OSWORD0_2 | _R2.OSWORD0_3:
                self._r2_state = _R2(self._r2_state + 1)
            case _R2.OSWORD0_4:
                self._call("R2: OSWORD0", block=_block(buf, 1, 5))
                self._expect_response(_Resp.OSWORD0_0, -1)
                self._r2_state = _R2.IDLE

            case _R2.OSWORD_FB_0:
                self._r2_state = _R2.OSWORD_FB_1
            case _R2.OSWORD_FB_1:
                if data == 0:
                    self._r2_state = _R2.OSWORD_FB_2
                elif data in (1, 2):
                    self._p2h_index = 0
                    self._r2_state = _R2.OSWORD_FB_FDC
                elif data == 3:
                    self._emit("R2: OSWORD: A=fb: tube claim\n")
                elif data == 4:
                    self._emit("R2: OSWORD: A=fb: tube release\n")
                else:
                    regs.x = data
                    self._r2_state = _R2.OSWORD_FB_IO
            case _R2.OSWORD_FB_2:
                self._r2_state = _R2.IDLE
            case _R2.OSWORD_FB_FDC:
                if index == 9:
                    command = "".join(f"{b:02x} " for b in reversed(buf[:9]))
                    self._emit(
                        f"R2: OSWORD: A=fb: fdc disk command: {command}({_FDC_COMMANDS[data >> 4]})\n"
                    )
                    self._r2_state = _R2.OSWORD_FB_1
            case _R2.OSWORD_FB_IO:
                if regs.x == 0x24:
                    self._emit(f"R2: OSWORD: A=fb: fdc disk control {data:02x}\n")
                elif regs.x == 0x29:
                    self._emit(f"R2: OSWORD: A=fb: fdc set track {data}\n")
                elif regs.x == 0x2A:
                    self._emit(f"R2: OSWORD: A=fb: fdc set sector {data}\n")
                elif regs.x == 0x2B:
                    self._emit(f"R2: OSWORD: A=fb: fdc set data {data}\n")
                else:
                    self._emit(f"R2: OSWORD: A=fb: io write FE{regs.x:02X}={data:02X}\n")
                self._r2_state = _R2.OSWORD_FB_1

            case _R2.OSWORD_FF_0:
                self._r2_state = _R2.OSWORD_FF_1
            case _R2.OSWORD_FF_1:
                # An address high byte of zero terminates the list.
                self._r2_state = _R2.OSWORD_FF_5 if data == 0 else _R2.OSWORD_FF_2
            case _R2.OSWORD_FF_2:
                self._r2_state = _R2.OSWORD_FF_3
            case _R2.OSWORD_FF_3:
                self._r2_state = _R2.OSWORD_FF_4
            case _R2.OSWORD_FF_4:
                if data == 0x00:
                    self._r2_state = _R2.OSWORD_FF_3
                elif data == 0xFF:
                    self._call("R2: OSWORD", a=regs.a, block=_block(buf, 3, index - 3))
                    self._p2h_index = 3
                    self._r2_state = _R2.OSWORD_FF_1
                else:
                    self._emit("Osword FF protocol violation\n")
                    self._r2_state = _R2.IDLE
            case _R2.OSWORD_FF_5:
                self._call("R2: OSWORD", a=regs.a, block=_block(buf, 3, 3))
                self._r2_state = _R2.IDLE

            case _R2.OSARGS_0:
                regs.y = data
                self._r2_state = _R2.OSARGS_1
            case _R2.OSARGS_1:
                if index == 6:
                    self._r2_state = _R2.OSARGS_2
            case _R2.OSARGS_2:
                regs.a = data
                self._r2_state = _R2.IDLE
                self._call("R2: OSARGS", a=regs.a, y=regs.y, block=_block(buf, 2, 5))
                self._expect_response(_Resp.OSARGS_0, 4)

            case _R2.OSBGET_0:
                regs.y = data
                self._call("R2: OSBGET", y=regs.y)
                self._r2_state = _R2.IDLE
                self._expect_response(_Resp.OSBGET_0, 2)

            case _R2.OSBPUT_0:
                regs.y = data
                self._r2_state = _R2.OSBPUT_1
            case _R2.OSBPUT_1:
                regs.a = data
                self._call("R2: OSBPUT", cy=regs.a, y=regs.y)
                self._r2_state = _R2.IDLE
                self._expect_response(_Resp.OSBPUT_0, 1)

            case _R2.OSFIND_0:
                regs.a = data
                self._r2_state = _R2.OSFIND_1 if regs.a == 0 else _R2.OSFIND_2
            case _R2.OSFIND_1:
                regs.y = data
                self._call("R2: OSFIND", a=regs.a, y=regs.y)
                self._r2_state = _R2.IDLE
                self._expect_response(_Resp.OSFIND_0, 1)
            case _R2.OSFIND_2:
                if data == 0x0D:
                    buf[index - 1] = 0
                    self._call("R2: OSFIND", a=regs.a, name=_cstr(buf, 2))
                    self._r2_state = _R2.IDLE
                    self._expect_response(_Resp.OSFIND_0, 1)

            case _R2.OSFILE_0:
                if index == 17:
                    self._r2_state = _R2.OSFILE_1
            case _R2.OSFILE_1:
                if data == 0x0D:
                    buf[index - 1] = 0
                    self._r2_state = _R2.OSFIND_2
            case _R2.OSFILE_2:
                regs.a = data
                self._call("R2: OSFILE", a=regs.a, name=_cstr(buf, 16), block=_block(buf, 1, 16))
                self._expect_response(_Resp.OSFIND_0, 16)
                self._r2_state = _R2.IDLE

            case _R2.OSGBPB_0:
                if index == 17:
                    self._r2_state = _R2.OSGBPB_1

            case _:
                pass
        if self._r2_state == _R2.IDLE:
            self._p2h_index = 0

    # -- public entry points -------------------------------------------

    def read(self, reg: int, data: int) -> None:
        """Decode a parasite-initiated access of register ``reg``."""
        data &= 0xFF
        if reg == 1:
            self._emit(f"R1: OSWRCH: {_printable(data)} <{data:02x}>\n")
        if reg == 3:
            self._r2_p2h(data)
        if reg == 5:
            self._emit(f"R3: P2H: {_printable(data)} <{data:02x}>\n")

    def write(self, reg: int, data: int) -> None:
        """Decode a host-initiated access of register ``reg``."""
        data &= 0xFF
        if reg == 0:
            self._emit(f"Ctrl: <{data:02x}>\n")
        if reg == 1:
            self._r1_h2p(data)
        if reg == 3:
            self._r2_h2p(data)
        if reg == 5:
            self._emit(f"R3: H2P: {_printable(data)} <{data:02x}>\n")
        if reg == 7:
            self._r4_h2p(data)