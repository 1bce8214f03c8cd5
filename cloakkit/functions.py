"""Discovered function records and the helpers that combine and filter them."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from .logger import Logger


@dataclass
class Function:
    """A function found in debug information or a map file."""

    valid: bool = False
    name: str = ""
    rva: int = 0
    size: Optional[int] = None

    def merge(self, other: "Function") -> None:
        """Fill in what this record lacks from another record of the same function."""
        if self.size is None and other.size is not None:
            self.size = other.size

        if not self.valid and other.valid:
            self.valid = other.valid
            self.name = other.name

    def __str__(self) -> str:
        size = "none" if self.size is None else str(self.size)
        valid = "true" if self.valid else "false"
        return f"valid[{valid}] name[{self.name}] size[{size}] rva[{self.rva:#x}]"


@dataclass(frozen=True)
class Section:
    """The parts of an image section that function discovery needs."""

    virtual_address: int
    virtual_size: int = 0
    executable: bool = False
    name: str = ""


def combine_function_lists(lists: Sequence[Sequence[Function]]) -> List[Function]:
    """Merge several lists into one; functions with the same RVA are merged together."""
    if not lists:
        return []

    result = [dataclasses.replace(function) for function in lists[0]]
    by_rva = {}
    for function in result:
        by_rva.setdefault(function.rva, function)

    for functions in lists[1:]:
        for function in functions:
            existing = by_rva.get(function.rva)
            if existing is None:
                copy = dataclasses.replace(function)
                result.append(copy)
                by_rva[copy.rva] = copy
            else:
                existing.merge(function)

    return result


def sanitize_function_list(
    items: Iterable[Function],
    sections: Iterable[Section],
    logger: Optional[Logger] = None,
) -> List[Function]:
    """Keep only valid functions that lie inside an executable section."""
    log = logger if logger is not None else Logger()
    exec_sections = [section for section in sections if section.executable]

    result = []
    for function in items:
        if not function.valid:
            log.debug("func_parser: sanitizing: !valid: {}", function)
            continue

        in_exec_mem = any(
            section.virtual_address <= function.rva <= section.virtual_address + section.virtual_size
            for section in exec_sections
        )
        if not in_exec_mem:
            log.debug("func_parser: sanitizing: !in_exec_mem: {}", function)
            continue

        result.append(function)

    return result