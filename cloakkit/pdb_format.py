"""Reader for the MSF 7.00 container used by program databases, and the DBI symbols in it."""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass
from typing import Dict, Iterator, List, NamedTuple, Optional, Tuple

from .logger import Logger

MAGIC = b"Microsoft C/C++ MSF 7.00\r\n\x1aDS\x00\x00\x00"
DBI_ALIGNMENT = 4
DBI_HEADER_STREAM = 3

_SUPER_BLOCK = struct.Struct("<32sIIIIII")
_U32 = struct.Struct("<I")
_RECORD_HEADER = struct.Struct("<HH")
_DBI_HEADER = struct.Struct("<iIIHHHHHHiiiiiIiiHHI")
_MODULE_INFO_SIZE = 64
_MODULE_SYM_FIELDS = struct.Struct("<HI")
_MODULE_SYM_FIELDS_OFFSET = 34
_OPTIONAL_DEBUG_HEADER_SIZE = 22
_SECTION_HEADER_STREAM_OFFSET = 10
_SECTION_HEADER = struct.Struct("<12xI24x")
_PROC32 = struct.Struct("<HH8IHB")


class PdbError(ValueError):
    """Raised when a program database is malformed."""


class SymbolKind(enum.IntEnum):
    """Symbol record kinds the function discovery cares about."""

    S_LPROC32 = 0x110F
    S_GPROC32 = 0x1110
    S_END = 0x6


@dataclass(frozen=True)
class SymbolRecord:
    """A raw symbol record, header included."""

    kind: int
    data: bytes


@dataclass(frozen=True)
class Proc32:
    """A decoded procedure symbol record."""

    kind: int
    parent: int
    end: int
    next: int
    size: int
    debug_start: int
    debug_end: int
    type_index: int
    offset: int
    segment: int
    flags: int
    name: str


class _DbiHeader(NamedTuple):
    version_signature: int
    version_header: int
    age: int
    global_stream_index: int
    build_number: int
    public_stream_index: int
    pdb_dll_version: int
    sym_record_stream: int
    pdb_dll_rebuild: int
    mod_info_size: int
    section_contribution_size: int
    section_map_size: int
    source_info_size: int
    type_server_size: int
    mfc_type_server_index: int
    optional_dbg_header_size: int
    ec_substream_size: int
    flags: int
    machine: int
    padding: int


def parse_proc32(data: bytes) -> Proc32:
    """Decode a procedure symbol record (local or global)."""
    if len(data) < _PROC32.size:
        raise PdbError("pdb: truncated procedure record")
    (_, kind, parent, end, nxt, size, debug_start, debug_end,
     type_index, offset, segment, flags) = _PROC32.unpack_from(data, 0)
    raw_name = data[_PROC32.size:]
    terminator = raw_name.find(b"\0")
    if terminator != -1:
        raw_name = raw_name[:terminator]
    return Proc32(
        kind=kind,
        parent=parent,
        end=end,
        next=nxt,
        size=size,
        debug_start=debug_start,
        debug_end=debug_end,
        type_index=type_index,
        offset=offset,
        segment=segment,
        flags=flags,
        name=raw_name.decode("utf-8", errors="replace"),
    )


def _align_up(value: int, factor: int) -> int:
    return (value + factor - 1) & ~(factor - 1)


def _signed32(value: int) -> int:
    return value - (1 << 32) if value & 0x80000000 else value


def _skip_cstring(data: bytes, pos: int) -> int:
    terminator = data.find(b"\0", pos)
    if terminator == -1:
        raise PdbError("pdb: unterminated string in DBI module info")
    return terminator + 1


class V7Parser:
    """Parses the streams, DBI symbols and section addresses of a PDB 7 file."""

    def __init__(self, data: bytes, logger: Optional[Logger] = None) -> None:
        self._data = bytes(data)
        self._logger = logger if logger is not None else Logger()
        self._block_size = 0
        self._sections: List[int] = []
        self._streams: List[bytes] = []
        self._symbols: Dict[int, List[SymbolRecord]] = {}
        self._read_header()

    @property
    def streams(self) -> Tuple[bytes, ...]:
        return tuple(self._streams)

    @property
    def sections(self) -> Tuple[int, ...]:
        return tuple(self._sections)

    def iter_symbols(self, *args: int) -> Iterator[SymbolRecord]:
        """Yield the records of the given kinds, kind by kind; all records when none are given."""
        if not args:
            for records in self._symbols.values():
                yield from records
            return
        for kind in args:
            yield from self._symbols.get(int(kind), ())

    def get_section(self, num: int) -> Optional[int]:
        """Virtual address of the section with the given zero-based index, if known."""
        if num < 0 or num >= len(self._sections):
            return None
        return self._sections[num]

    def _read_header(self) -> None:
        if len(self._data) < _SUPER_BLOCK.size or not self._data.startswith(MAGIC):
            raise PdbError("pdb: Invalid pdb7 header")
        (_, block_size, _, _, num_directory_bytes, _, block_map_addr) = _SUPER_BLOCK.unpack_from(self._data, 0)
        self._block_size = block_size
        self._read_streams(num_directory_bytes, block_map_addr)
        self._read_dbi()

    def _block(self, index: int) -> bytes:
        start = index * self._block_size
        end = start + self._block_size
        if end > len(self._data):
            raise PdbError(f"pdb: block {index} is out of range")
        return self._data[start:end]

    def _u32s(self, data: bytes, offset: int, count: int) -> Tuple[int, ...]:
        if offset + count * 4 > len(data):
            raise PdbError("pdb: truncated block list")
        return struct.unpack_from(f"<{count}I", data, offset)

    def _stream_directory(self, size: int, block_map_addr: int) -> bytes:
        block_size = self._block_size
        block_count = (size + block_size - 1) // block_size if block_size else 0
        if size == 0 or block_count == 0 or block_size == 0:
            self._logger.error(
                "Empty stream directory, msg[0] size[{}] block_count[{}] block_size[{}]",
                size, block_count, block_size,
            )
            return b""

        block_ids = self._u32s(self._data, block_size * block_map_addr, block_count)
        directory = b"".join(self._block(block_id) for block_id in block_ids)
        if not directory:
            self._logger.error(
                "Empty stream directory, msg[1] size[{}] block_count[{}] block_size[{}]",
                size, block_count, block_size,
            )
            return b""
        return directory[:size]

    def _read_streams(self, num_directory_bytes: int, block_map_addr: int) -> None:
        directory = self._stream_directory(num_directory_bytes, block_map_addr)
        if not directory:
            raise PdbError("pdb: Got empty stream directory")

        (streams_count,) = self._u32s(directory, 0, 1)
        sizes = self._u32s(directory, 4, streams_count)
        ids_offset = 4 + 4 * streams_count
        ids = iter(self._u32s(directory, ids_offset, (len(directory) - ids_offset) // 4))

        block_size = self._block_size
        self._streams = []
        for stream_size in sizes:
            stream_blocks = ((stream_size + block_size - 1) & 0xFFFFFFFF) // block_size
            if stream_blocks == 0:
                # Empty streams, including those with size -1
                self._streams.append(b"" if _signed32(stream_size) <= 0 else bytes(stream_size))
                continue
            try:
                stream = b"".join(self._block(next(ids)) for _ in range(stream_blocks))
            except StopIteration:
                raise PdbError("pdb: stream directory lists too few blocks") from None
            self._streams.append(stream[:stream_size])

    def _add_record(self, stream: bytes, pos: int) -> int:
        size, kind = _RECORD_HEADER.unpack_from(stream, pos)
        self._symbols.setdefault(kind, []).append(SymbolRecord(kind, stream[pos:pos + 2 + size]))
        return size

    def _read_dbi(self) -> None:
        if len(self._streams) <= DBI_HEADER_STREAM:
            self._logger.error("pdb: DBI header not found, huh? streams_size[{}]", len(self._streams))
            return

        raw = self._streams[DBI_HEADER_STREAM]
        if not raw:
            self._logger.error("pdb: got empty DBI header, huh?")
            return
        if len(raw) < _DBI_HEADER.size:
            raise PdbError("pdb: truncated DBI header")

        header = _DbiHeader._make(_DBI_HEADER.unpack_from(raw, 0))
        self._parse_symbol_records(header)
        self._parse_module_infos(raw, header)
        self._parse_image_section_stream(raw, header)

        self._logger.debug("pdb: Parsed {} types of DBI symbols", len(self._symbols))

    def _parse_symbol_records(self, header: _DbiHeader) -> None:
        if len(self._streams) <= header.sym_record_stream:
            self._logger.warn("pdb: DBI sym record stream not found")
            return

        stream = self._streams[header.sym_record_stream]
        pos = 0
        while pos + _RECORD_HEADER.size <= len(stream):
            pos += self._add_record(stream, pos) + 2

    def _parse_module_infos(self, raw: bytes, header: _DbiHeader) -> None:
        if header.mod_info_size <= 0:
            self._logger.warn("pdb: got empty DBI mod info stream")
            return

        pos = _DBI_HEADER.size
        end = pos + header.mod_info_size
        while pos < end:
            if pos + _MODULE_INFO_SIZE > len(raw):
                raise PdbError("pdb: truncated DBI module info")
            sym_stream_index, sym_byte_size = _MODULE_SYM_FIELDS.unpack_from(raw, pos + _MODULE_SYM_FIELDS_OFFSET)
            pos += _MODULE_INFO_SIZE
            pos = _skip_cstring(raw, pos)  # module name
            pos = _skip_cstring(raw, pos)  # object name
            pos = _align_up(pos, DBI_ALIGNMENT)

            if sym_stream_index <= 0 or sym_byte_size <= 0 or len(self._streams) <= sym_stream_index:
                continue

            stream = self._streams[sym_stream_index]
            # The stream starts with a signature we do not need
            sym_pos = 4
            sym_end = sym_pos + sym_byte_size
            while sym_pos < sym_end and sym_pos + _RECORD_HEADER.size <= len(stream):
                size = self._add_record(stream, sym_pos)
                sym_pos = _align_up(sym_pos + 2 + size, DBI_ALIGNMENT)

    def _parse_image_section_stream(self, raw: bytes, header: _DbiHeader) -> None:
        if header.optional_dbg_header_size <= 0:
            self._logger.warn("pdb: got empty optional DBG header")
            return

        offset = (
            _DBI_HEADER.size
            + header.mod_info_size
            + header.section_contribution_size
            + header.section_map_size
            + header.source_info_size
            + header.type_server_size
            + header.ec_substream_size
        )
        if offset < 0 or offset + _OPTIONAL_DEBUG_HEADER_SIZE > len(raw):
            raise PdbError("pdb: truncated optional DBG header")

        (index,) = struct.unpack_from("<H", raw, offset + _SECTION_HEADER_STREAM_OFFSET)
        if index <= 0 or len(self._streams) <= index:
            self._logger.warn("pdb: got invalid optional DBG header")
            return

        stream = self._streams[index]
        usable = len(stream) - len(stream) % _SECTION_HEADER.size
        self._sections.extend(va for (va,) in _SECTION_HEADER.iter_unpack(stream[:usable]))