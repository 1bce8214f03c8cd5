"""Function discovery from PDB 7 program databases."""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional, Union

from .files import read_file
from .functions import Function
from .logger import Logger
from .pdb_format import MAGIC, SymbolKind, V7Parser, parse_proc32


def discover_functions(
    pdb_path: Optional[Union[str, "os.PathLike[str]"]],
    base_of_code: int = 0,
    logger: Optional[Logger] = None,
) -> List[Function]:
    """List the local and global procedures of a PDB; empty if there is no usable file."""
    log = logger if logger is not None else Logger()

    if pdb_path is None or str(pdb_path) == "":
        return []

    path = Path(pdb_path)
    if not path.exists():
        return []

    content = read_file(path)
    if not content:
        return []

    if not content.startswith(MAGIC):
        log.fixme("Only PDB7 is supported atm", indent=1)
        return []

    parser = V7Parser(content, log)
    result: List[Function] = []
    for record in parser.iter_symbols(SymbolKind.S_LPROC32, SymbolKind.S_GPROC32):
        proc = parse_proc32(record.data)
        function = Function(valid=True, name=proc.name, size=proc.size)
        result.append(function)

        segment = parser.get_section(proc.segment - 1)
        if segment is None:
            function.valid = False
            log.warn("pdb: Unable to obtain segment base num[{}] func[{}]", proc.segment, proc.name)
            continue

        function.rva = segment + proc.offset

    return result