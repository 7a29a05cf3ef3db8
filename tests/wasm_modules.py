"""
Hand-encoded WebAssembly modules for the tests.

Only what the tests need: one exported function returning a constant, with
optional parameters, memory, an import or a trapping body.
"""
from typing import Optional, Sequence

I32 = 0x7F
I64 = 0x7E

SECTION_TYPE = 1
SECTION_IMPORT = 2
SECTION_FUNCTION = 3
SECTION_MEMORY = 5
SECTION_EXPORT = 7
SECTION_CODE = 10

HEADER = b"\x00asm\x01\x00\x00\x00"


def uleb(value: int) -> bytes:
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def sleb(value: int) -> bytes:
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        done = (value == 0 and not byte & 0x40) or (value == -1 and byte & 0x40)
        out.append(byte if done else byte | 0x80)
        if done:
            return bytes(out)


def vec(items: Sequence[bytes]) -> bytes:
    return uleb(len(items)) + b"".join(items)


def name(text: str) -> bytes:
    data = text.encode("utf-8")
    return uleb(len(data)) + data


def section(section_id: int, payload: bytes) -> bytes:
    return bytes([section_id]) + uleb(len(payload)) + payload


def func_type(params: Sequence[int], results: Sequence[int]) -> bytes:
    return b"\x60" + vec([bytes([p]) for p in params]) + vec([bytes([r]) for r in results])


def build_module(
    value: int = 7,
    result_type: Optional[int] = I32,
    export_name: Optional[str] = "program",
    params: Sequence[int] = (),
    memory_pages: Optional[int] = None,
    import_function: bool = False,
    trap: bool = False,
) -> bytes:
    """
    A module with one defined function, exported as `export_name`.

    result_type None makes the function return nothing. trap replaces the
    body with `unreachable`.
    """
    results = [] if result_type is None else [result_type]
    types = [func_type(params, results)]
    if import_function:
        types.append(func_type([], []))

    out = HEADER + section(SECTION_TYPE, vec(types))
    if import_function:
        out += section(SECTION_IMPORT, vec([name("env") + name("host") + b"\x00" + uleb(1)]))
    out += section(SECTION_FUNCTION, vec([uleb(0)]))
    if memory_pages is not None:
        out += section(SECTION_MEMORY, vec([b"\x00" + uleb(memory_pages)]))
    if export_name is not None:
        func_index = 1 if import_function else 0
        out += section(SECTION_EXPORT, vec([name(export_name) + b"\x00" + uleb(func_index)]))

    if trap:
        body = b"\x00"
    elif result_type == I64:
        body = b"\x42" + sleb(value)
    elif result_type == I32:
        body = b"\x41" + sleb(value)
    else:
        body = b""
    code = b"\x00" + body + b"\x0b"
    out += section(SECTION_CODE, vec([uleb(len(code)) + code]))
    return out
