"""
Minimal reader for the parts of a binary WebAssembly module the harness needs.

Only the type, import, function, memory and export sections are decoded.
Everything else is skipped by section framing. This is enough to resolve an
exported function's signature and the module's initial memory size for
engines that cannot report them natively.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

WASM_MAGIC = b"\x00asm"
WASM_VERSION = b"\x01\x00\x00\x00"
WASM_PAGE_SIZE = 65536

SECTION_TYPE = 1
SECTION_IMPORT = 2
SECTION_FUNCTION = 3
SECTION_MEMORY = 5
SECTION_EXPORT = 7

KIND_FUNC = 0
KIND_TABLE = 1
KIND_MEMORY = 2
KIND_GLOBAL = 3
KIND_TAG = 4

VALUE_TYPES = {
    0x7F: "i32",
    0x7E: "i64",
    0x7D: "f32",
    0x7C: "f64",
    0x7B: "v128",
    0x70: "funcref",
    0x6F: "externref",
}


@dataclass(frozen=True)
class FuncSignature:
    params: Tuple[str, ...]
    results: Tuple[str, ...]


@dataclass(frozen=True)
class Export:
    name: str
    kind: int
    index: int


@dataclass
class ModuleInfo:
    func_types: List[FuncSignature] = field(default_factory=list)
    exports: Dict[str, Export] = field(default_factory=dict)
    memory_min_pages: List[int] = field(default_factory=list)
    imports: List[Tuple[str, str]] = field(default_factory=list)

    def function_signature(self, name: str) -> Optional[FuncSignature]:
        """Signature of an exported function, or None if no such function export exists."""
        export = self.exports.get(name)
        if export is None or export.kind != KIND_FUNC:
            return None
        if export.index >= len(self.func_types):
            raise ValueError(f"Export '{name}' refers to unknown function {export.index}")
        return self.func_types[export.index]

    @property
    def initial_memory_pages(self) -> int:
        return max(self.memory_min_pages, default=0)


def _read_varuint(data: bytes, offset: int) -> Tuple[int, int]:
    result = 0
    shift = 0
    while True:
        if offset >= len(data):
            raise ValueError("Unexpected EOF while reading varuint")
        byte = data[offset]
        offset += 1
        result |= (byte & 0x7F) << shift
        if byte & 0x80 == 0:
            break
        shift += 7
    return result, offset


def _read_byte(data: bytes, offset: int) -> Tuple[int, int]:
    if offset >= len(data):
        raise ValueError("Unexpected EOF while reading byte")
    return data[offset], offset + 1


def _read_string(data: bytes, offset: int) -> Tuple[str, int]:
    length, offset = _read_varuint(data, offset)
    end = offset + length
    if end > len(data):
        raise ValueError("Unexpected EOF while reading string")
    return data[offset:end].decode("utf-8"), end


def _read_value_types(data: bytes, offset: int) -> Tuple[Tuple[str, ...], int]:
    count, offset = _read_varuint(data, offset)
    types = []
    for _ in range(count):
        code, offset = _read_byte(data, offset)
        if code not in VALUE_TYPES:
            raise ValueError(f"Unknown value type 0x{code:02x}")
        types.append(VALUE_TYPES[code])
    return tuple(types), offset


def _read_limits(data: bytes, offset: int) -> Tuple[int, int]:
    """Return (minimum, offset after the limits)."""
    flags, offset = _read_byte(data, offset)
    minimum, offset = _read_varuint(data, offset)
    if flags & 0x01:
        _, offset = _read_varuint(data, offset)
    return minimum, offset


def parse_sections(data: bytes) -> List[Tuple[int, bytes]]:
    if len(data) < 8 or data[:4] != WASM_MAGIC or data[4:8] != WASM_VERSION:
        raise ValueError("Invalid wasm header")
    offset = 8
    sections: List[Tuple[int, bytes]] = []
    while offset < len(data):
        section_id = data[offset]
        offset += 1
        size, offset = _read_varuint(data, offset)
        end = offset + size
        if end > len(data):
            raise ValueError("Unexpected EOF while reading section")
        sections.append((section_id, data[offset:end]))
        offset = end
    return sections


def _parse_types(payload: bytes) -> List[FuncSignature]:
    count, offset = _read_varuint(payload, 0)
    signatures = []
    for _ in range(count):
        form, offset = _read_byte(payload, offset)
        if form != 0x60:
            raise ValueError(f"Unsupported type form 0x{form:02x}")
        params, offset = _read_value_types(payload, offset)
        results, offset = _read_value_types(payload, offset)
        signatures.append(FuncSignature(params, results))
    return signatures


def _parse_imports(payload: bytes, types: List[FuncSignature], info: ModuleInfo) -> None:
    count, offset = _read_varuint(payload, 0)
    for _ in range(count):
        module, offset = _read_string(payload, offset)
        name, offset = _read_string(payload, offset)
        info.imports.append((module, name))
        kind, offset = _read_byte(payload, offset)
        if kind == KIND_FUNC:
            type_index, offset = _read_varuint(payload, offset)
            info.func_types.append(_type_at(types, type_index))
        elif kind == KIND_TABLE:
            _, offset = _read_byte(payload, offset)
            _, offset = _read_limits(payload, offset)
        elif kind == KIND_MEMORY:
            minimum, offset = _read_limits(payload, offset)
            info.memory_min_pages.append(minimum)
        elif kind == KIND_GLOBAL:
            offset += 2
        elif kind == KIND_TAG:
            offset += 1
            _, offset = _read_varuint(payload, offset)
        else:
            raise ValueError(f"Unknown import kind: {kind}")


def _type_at(types: List[FuncSignature], index: int) -> FuncSignature:
    if index >= len(types):
        raise ValueError(f"Type index {index} out of range")
    return types[index]


def parse_module_info(data: bytes) -> ModuleInfo:
    """
    Decode signatures, exports and memory sizes from a binary module.

    Raises:
        ValueError: If the bytes are not a well-framed wasm module
    """
    info = ModuleInfo()
    types: List[FuncSignature] = []
    for section_id, payload in parse_sections(data):
        if section_id == SECTION_TYPE:
            types = _parse_types(payload)
        elif section_id == SECTION_IMPORT:
            _parse_imports(payload, types, info)
        elif section_id == SECTION_FUNCTION:
            count, offset = _read_varuint(payload, 0)
            for _ in range(count):
                type_index, offset = _read_varuint(payload, offset)
                info.func_types.append(_type_at(types, type_index))
        elif section_id == SECTION_MEMORY:
            count, offset = _read_varuint(payload, 0)
            for _ in range(count):
                minimum, offset = _read_limits(payload, offset)
                info.memory_min_pages.append(minimum)
        elif section_id == SECTION_EXPORT:
            count, offset = _read_varuint(payload, 0)
            for _ in range(count):
                name, offset = _read_string(payload, offset)
                kind, offset = _read_byte(payload, offset)
                index, offset = _read_varuint(payload, offset)
                info.exports[name] = Export(name, kind, index)
    return info
