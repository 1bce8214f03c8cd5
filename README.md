# cloakkit

cloakkit finds the functions of a PE image from its PDB7 program database (the MSF 7.00 container). It also includes helpers for the following:

- merging function lists and filtering them against the image's sections;
- levelled console logging;
- elapsed-time measurement;
- parsing configuration values from strings.

The package has no dependencies outside the standard library.

## Installation

```
pip install cloakkit
pip install "cloakkit[test]"   # adds pytest
```

## Finding functions in a PDB

```python
from cloakkit.pdb import discover_functions

functions = discover_functions("app.pdb")
for fn in functions:
    print(fn)   # valid[true] name[main] size[42] rva[0x1000]
```

`cloakkit.pdb.discover_functions(pdb_path, base_of_code=0, logger=None)` reads every local (`S_LPROC32`) and global (`S_GPROC32`) procedure record and returns a list of `Function` objects.

Each function's RVA is the virtual address of its section plus the record's offset. A record can point at a section that the database does not describe. In that case the function is still returned, but with `valid=False`, and a warning is logged. The `base_of_code` argument is accepted but not used.

The function returns an empty list in these cases:

- the path is `None` or empty;
- the file does not exist or is empty;
- the file is not a PDB7 database. A "fixme" line is also logged in this case.

A database that starts with the right magic but is malformed raises `cloakkit.pdb_format.PdbError`, which is a subclass of `ValueError`.

### Lower-level access

`cloakkit.pdb_format` gives direct access to the container:

```python
from cloakkit.files import read_file
from cloakkit.pdb_format import SymbolKind, V7Parser, parse_proc32

parser = V7Parser(read_file("app.pdb"))
print(len(parser.streams), parser.sections)
for record in parser.iter_symbols(SymbolKind.S_GPROC32):
    proc = parse_proc32(record.data)
    print(proc.name, proc.segment, proc.offset, proc.size)
```

The parser has these members:

- `V7Parser(data, logger=None)` parses the header, the stream directory and the DBI stream. It raises `PdbError` if the header magic is wrong or the data is truncated.
- `streams` holds the raw MSF streams.
- `sections` holds the section virtual addresses taken from the section-header stream.
- `iter_symbols(*kinds)` yields `SymbolRecord(kind, data)` objects for the given kinds, one kind after another. With no arguments it yields every record.
- `get_section(num)` returns the virtual address of the section with zero-based index `num`, or `None` if there is no such section.

`parse_proc32(data)` decodes a procedure record into a `Proc32` dataclass. The fields are parent, end, next, size, debug range, type index, offset, segment, flags and name.

## Combining and filtering function lists

```python
from cloakkit.functions import Function, Section, combine_function_lists, sanitize_function_list

sections = [Section(virtual_address=0x1000, virtual_size=0x2000, executable=True, name=".text")]
merged = combine_function_lists([pdb_functions, other_functions])
kept = sanitize_function_list(merged, sections)
```

`Function` is a dataclass with the fields `valid`, `name`, `rva` and `size`.

`Function.merge(other)` fills in the size when this function has none. It also copies the name and validity when this function is invalid and `other` is valid.

`combine_function_lists` works as follows:

- it starts from copies of the functions in the first list;
- for each later function whose RVA is already present, it merges that function into the existing one;
- it appends every other function.

`sanitize_function_list` drops two kinds of function, and logs each one it drops at debug level:

- invalid functions;
- functions whose RVA does not lie within an executable `Section` (both ends inclusive).

## Utilities

- `cloakkit.logger.Logger(stream=None, enabled=True, colors_enabled=True, show_timestamps=True)` writes lines to `stream`, or to standard output if no stream is given.
  - The levels are `debug`, `info`, `warn`, `error`, `critical`, `msg`, `todo` and `fixme`.
  - Each level method takes a `str.format`-style format string, its arguments, and a keyword `indent`.
  - `info_or_warn`, `info_or_error` and `info_or_critical` choose the level from a condition.
  - Each output line may carry a timestamp (`HH:MM:SS.mmm`). It also carries `|` indentation, a centred level tag and ANSI colours. Output is serialised by a lock.
- `cloakkit.stopwatch.Stopwatch` measures time.
  - `elapsed()` returns an `ElapsedTime`, and `reset()` restarts the clock.
  - `str(ElapsedTime(microseconds))` gives output such as `"1 min 2 sec 5 ms"`. If every larger unit is zero, it gives `"<n> microseconds"` instead.
- `cloakkit.string_parser` parses and serialises configuration values.
  - `parse_int32`, `parse_uint32`, `parse_int8` and `parse_uint8` take an optional base and parse a leading integer. They accept leading whitespace, a sign and a `0x` prefix in base 16. They raise `ValueError` when there are no digits and `OverflowError` when the value is out of range.
  - `parse_bool` accepts only `"true"` and `"1"` as true.
  - `parse(s, ValueKind.X)` parses `s` as the given kind.
  - `serialize(value)` writes a bool or an integer as a string.
  - `parse_like(current, s)` parses `s` to the type of `current`.
- `cloakkit.files.read_file(path)` returns the bytes of a file, or `b""` if it cannot be read. `write_file(path, data)` replaces a file's contents.

## What this package does not do

- It does not read linker `.map` files.
- It does not parse PE images. Section information for filtering must be supplied as `Section` objects.
- It has no single step that searches several locations for debug information.
- It has no command-line interface.
- It does not generate or transform code.

## Running the tests

```
pytest
```