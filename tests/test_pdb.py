import io
import struct

import pytest

from cloakkit.logger import Logger
from cloakkit.pdb import discover_functions
from cloakkit.pdb_format import MAGIC, PdbError, SymbolKind

BLOCK = 512
SECTION_VAS = [0x1000, 0x2000]


def build_msf(streams, block_size=BLOCK):
    blocks = [b"", b""]

    def alloc(chunk):
        blocks.append(chunk.ljust(block_size, b"\0"))
        return len(blocks) - 1

    sizes, ids = [], []
    for stream in streams:
        sizes.append(len(stream))
        ids.extend(alloc(stream[i:i + block_size]) for i in range(0, len(stream), block_size))
    directory = struct.pack(f"<I{len(sizes)}I{len(ids)}I", len(sizes), *sizes, *ids)
    dir_ids = [alloc(directory[i:i + block_size]) for i in range(0, len(directory), block_size)]
    blocks[1] = struct.pack(f"<{len(dir_ids)}I", *dir_ids).ljust(block_size, b"\0")
    blocks[0] = (MAGIC + struct.pack("<6I", block_size, 0, len(blocks), len(directory), 0, 1)).ljust(
        block_size, b"\0"
    )
    return b"".join(blocks)


def proc_record(kind, name, offset, segment, size=0x20):
    rest = struct.pack("<H8IHB", kind, 0, 0, 0, size, 0, 0, 0, offset, segment, 0) + name.encode() + b"\0"
    while (2 + len(rest)) % 4:
        rest += b"\0"
    return struct.pack("<H", len(rest)) + rest


def module_info(sym_stream, sym_bytes, name=b"mod.obj"):
    body = struct.pack("<I28sHHIIIH2sIII", 0, b"", 0, sym_stream, sym_bytes, 0, 0, 0, b"", 0, 0, 0)
    body += name + b"\0" + name + b"\0"
    while len(body) % 4:
        body += b"\0"
    return body


def dbi_stream(sym_record_stream, mod_info, section_header_stream):
    opt = struct.pack("<11H", 0, 0, 0, 0, 0, section_header_stream, 0, 0, 0, 0, 0)
    header = struct.pack(
        "<iIIHHHHHHiiiiiIiiHHI",
        -1, 19990903, 1,
        0, 0, 0, 0, sym_record_stream, 0,
        len(mod_info), 0, 0, 0, 0,
        0,
        len(opt), 0,
        0, 0x8664,
        0,
    )
    return header + mod_info + opt


def section_headers(vas):
    return b"".join(
        struct.pack("<8sIIIIIIHHI", b".text", 0x100, va, 0, 0, 0, 0, 0, 0, 0x60000020) for va in vas
    )


def sample_pdb(global_records=None):
    if global_records is None:
        global_records = proc_record(SymbolKind.S_GPROC32, "main", 0x10, 1, size=0x30) + proc_record(
            SymbolKind.S_GPROC32, "helper", 0x40, 2, size=0x8
        )
    module_records = proc_record(SymbolKind.S_LPROC32, "local_fn", 0x80, 1, size=0x11)
    streams = [
        b"",
        b"",
        b"",
        dbi_stream(4, module_info(5, len(module_records)), 6),
        global_records,
        b"\x04\x00\x00\x00" + module_records,
        section_headers(SECTION_VAS),
    ]
    return build_msf(streams)


def make_logger():
    stream = io.StringIO()
    return Logger(stream=stream, colors_enabled=False, show_timestamps=False), stream


def test_none_path_gives_nothing():
    assert discover_functions(None, 0, make_logger()[0]) == []


def test_missing_file_gives_nothing(tmp_path):
    assert discover_functions(tmp_path / "missing.pdb", 0, make_logger()[0]) == []


def test_empty_file_gives_nothing(tmp_path):
    path = tmp_path / "empty.pdb"
    path.write_bytes(b"")
    assert discover_functions(path, 0, make_logger()[0]) == []


def test_non_pdb7_file_logs_fixme(tmp_path):
    path = tmp_path / "old.pdb"
    path.write_bytes(b"Microsoft C/C++ program database 2.00\r\n\x1aJG\0\0" + b"\0" * 64)
    logger, out = make_logger()
    assert discover_functions(path, 0, logger) == []
    assert "Only PDB7 is supported atm" in out.getvalue()


def test_discovers_procedures(tmp_path):
    path = tmp_path / "app.pdb"
    path.write_bytes(sample_pdb())
    functions = discover_functions(str(path), 0, make_logger()[0])

    assert [f.name for f in functions] == ["local_fn", "main", "helper"]
    assert all(f.valid for f in functions)

    by_name = {f.name: f for f in functions}
    assert by_name["main"].rva == SECTION_VAS[0] + 0x10
    assert by_name["main"].size == 0x30
    assert by_name["helper"].rva == SECTION_VAS[1] + 0x40
    assert by_name["local_fn"].rva == SECTION_VAS[0] + 0x80


def test_unknown_segment_marks_function_invalid(tmp_path):
    path = tmp_path / "bad_segment.pdb"
    records = proc_record(SymbolKind.S_GPROC32, "orphan", 0x10, 7)
    path.write_bytes(sample_pdb(global_records=records))
    logger, out = make_logger()
    functions = discover_functions(path, 0, logger)

    orphan = next(f for f in functions if f.name == "orphan")
    assert orphan.valid is False
    assert orphan.rva == 0
    assert "Unable to obtain segment base num[7] func[orphan]" in out.getvalue()


def test_segment_zero_is_invalid(tmp_path):
    path = tmp_path / "zero_segment.pdb"
    records = proc_record(SymbolKind.S_GPROC32, "nowhere", 0x10, 0)
    path.write_bytes(sample_pdb(global_records=records))
    functions = discover_functions(path, 0, make_logger()[0])
    assert [f.valid for f in functions if f.name == "nowhere"] == [False]


def test_malformed_pdb7_raises(tmp_path):
    path = tmp_path / "broken.pdb"
    path.write_bytes((MAGIC + struct.pack("<6I", BLOCK, 0, 1, 0, 0, 1)).ljust(BLOCK, b"\0"))
    with pytest.raises(PdbError):
        discover_functions(path, 0, make_logger()[0])