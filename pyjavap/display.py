"""
Text dump of a decoded class file, in the spirit of `javap -v`.
"""

from .classfile import ClassFile, ClassFileField, ClassFileMethod
from .code import MethodCode
from .errors import ClassFileError
from .flags import flag_names


def format_flags(flags) -> str:
    names = flag_names(flags)
    return " ".join(name.lower() for name in names) if names else "(none)"


def format_field(fld: ClassFileField) -> str:
    text = f"{format_flags(fld.flags)} {fld.name}: {fld.type_descriptor}"
    if fld.constant_value is not None:
        text += f" = {fld.constant_value}"
    if fld.deprecated:
        text += " (deprecated)"
    return text


def format_code(code: MethodCode, indent: str = "    ") -> list[str]:
    """Lines describing a Code attribute, including the decoded instructions.

    Bytecode that fails to decode is shown as raw bytes along with the error.
    """
    lines = [f"{indent}max_stack = {code.max_stack}, max_locals = {code.max_locals}, "
             f"code_length = {len(code.code)}"]
    try:
        instructions = code.instructions()
    except ClassFileError as e:
        lines.append(f"{indent}  unparseable code: {code.code.hex(' ')} ({e})")
    else:
        for address, instruction in instructions:
            lines.append(f"{indent}  {address:4}: {instruction}")

    if len(code.exception_table):
        lines.append(f"{indent}exception table:")
        for entry in code.exception_table:
            catch = entry.catch_class or "any"
            lines.append(f"{indent}  [{entry.start_pc}, {entry.end_pc}) -> {entry.handler_pc} {catch}")
    if code.line_number_table is not None:
        lines.append(f"{indent}line numbers:")
        for entry in code.line_number_table:
            lines.append(f"{indent}  line {entry.line_number}: {entry.program_counter}")
    for attr in code.attributes:
        lines.append(f"{indent}attribute {attr.name} ({len(attr.data)} bytes)")
    return lines


def format_method(method: ClassFileMethod) -> list[str]:
    header = f"{format_flags(method.flags)} {method.name}: {method.parsed_type_descriptor}"
    if method.thrown_exceptions:
        header += " throws " + ", ".join(method.thrown_exceptions)
    if method.deprecated:
        header += " (deprecated)"
    lines = [header]
    if method.code is not None:
        lines.extend(format_code(method.code))
    for attr in method.attributes:
        lines.append(f"    attribute {attr.name} ({len(attr.data)} bytes)")
    return lines


def format_class_file(cls: ClassFile) -> str:
    """Render a whole class file as text."""
    header = f"Class {cls.name}"
    if cls.superclass is not None:
        header += f" (extends {cls.superclass})"
    header += f" version: {cls.version}"

    lines = [header]
    if cls.source_file is not None:
        lines.append(f"source file: {cls.source_file}")
    lines.append(cls.constants.render())
    lines.append(f"flags: {format_flags(cls.flags)}, deprecated: {cls.deprecated}")
    lines.append(f"interfaces: {', '.join(cls.interfaces) if cls.interfaces else '(none)'}")

    lines.append("fields:")
    for fld in cls.fields:
        lines.append(f"  - {format_field(fld)}")

    lines.append("methods:")
    for method in cls.methods:
        method_lines = format_method(method)
        lines.append(f"  - {method_lines[0]}")
        lines.extend(f"  {line}" for line in method_lines[1:])

    for attr in cls.attributes:
        lines.append(f"attribute {attr.name} ({len(attr.data)} bytes)")
    return "\n".join(lines)
