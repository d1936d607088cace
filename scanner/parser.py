"""Line-oriented extraction of package and import declarations from Java sources.

This is a textual scan, not a Java parser: only lines that start with
``package`` or ``import`` are looked at, and scanning stops at the first
type declaration.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional

logger = logging.getLogger(__name__)


IMPORT_KEYWORD = "import"
PACKAGE_KEYWORD = "package"
STATIC_MODIFIER = "static "

# Shortest valid statements: "import a;" and "package a;"
MIN_IMPORT_LENGTH = len("import a;")
MIN_PACKAGE_LENGTH = len("package a;")

# Once one of these starts a line, the import section is over
TYPE_DECLARATION_PREFIXES = (
    "public", "class", "abstract", "final", "interface", "enum",
)


class SourceParseError(ValueError):
    """A line could not be parsed as the expected declaration."""


@dataclass
class SourceUnit:
    """A scanned source file: its unit name and the names it references."""

    name: str
    references: List[str] = field(default_factory=list)
    path: Optional[Path] = None


def parse_import(line: str) -> str:
    """
    Extract the imported name from an import statement.

    ``import com.example.Foo;`` yields ``com.example.Foo``. The ``static``
    modifier is dropped, so ``import static a.B.c;`` yields ``a.B.c``.

    Raises:
        SourceParseError: If the line is not an import or is too short.
    """
    line = line.strip()

    if not line.startswith(IMPORT_KEYWORD):
        raise SourceParseError(f"import statement not found: {line}")

    if len(line) < MIN_IMPORT_LENGTH:
        raise SourceParseError(f"line too short to be valid: {line}")

    if not line[len(IMPORT_KEYWORD)].isspace():
        raise SourceParseError(f"missing space after keyword: {line}")

    name = line[len(IMPORT_KEYWORD) + 1:].rstrip(";").strip()
    if name.startswith(STATIC_MODIFIER):
        name = name[len(STATIC_MODIFIER):].strip()

    if not name:
        raise SourceParseError(f"empty import: {line}")

    return name


def parse_package(line: str) -> str:
    """
    Extract the package name from a package declaration.

    ``package com.example;`` yields ``com.example``.

    Raises:
        SourceParseError: If the line is not a package declaration or is too short.
    """
    line = line.strip()

    if not line.startswith(PACKAGE_KEYWORD):
        raise SourceParseError(f"package statement not found: {line}")

    if len(line) < MIN_PACKAGE_LENGTH:
        raise SourceParseError(f"line too short to be valid: {line}")

    if not line[len(PACKAGE_KEYWORD)].isspace():
        raise SourceParseError(f"missing space after keyword: {line}")

    name = line[len(PACKAGE_KEYWORD) + 1:].rstrip(";").strip()
    if not name:
        raise SourceParseError(f"empty package: {line}")

    return name


def extract_imports(lines: Iterable[str]) -> List[str]:
    """
    Collect the imported names from source lines.

    Stops at the first line that starts a type declaration. Malformed
    import lines are logged and skipped.
    """
    imports: List[str] = []

    for line in lines:
        if line.startswith(IMPORT_KEYWORD + " "):
            try:
                imports.append(parse_import(line))
            except SourceParseError as e:
                logger.warning("Skipping malformed import: %s", e)
            continue

        if line.startswith(TYPE_DECLARATION_PREFIXES):
            break

    return imports


def extract_package(lines: Iterable[str]) -> str:
    """Return the declared package, or an empty string if there is none."""
    for line in lines:
        if line.startswith(PACKAGE_KEYWORD + " "):
            try:
                return parse_package(line)
            except SourceParseError as e:
                logger.warning("Skipping malformed package declaration: %s", e)
                return ""

        if line.startswith(TYPE_DECLARATION_PREFIXES):
            break

    return ""


def unit_name(package: str, file_path: Path) -> str:
    """Build the fully-qualified name of the class a file declares."""
    class_name = file_path.name.split(".")[0]
    if not package:
        return class_name
    return f"{package}.{class_name}"


def extract_fqcn(file_path: Path) -> str:
    """
    Read a source file and return its fully-qualified class name.

    Raises:
        OSError: If the file cannot be read.
    """
    with open(file_path, encoding="utf-8", errors="replace") as handle:
        package = extract_package(handle)
    return unit_name(package, file_path)


def scan_file(file_path: Path) -> SourceUnit:
    """
    Read a source file once and return its unit name and imports.

    Raises:
        OSError: If the file cannot be read.
    """
    content = file_path.read_text(encoding="utf-8", errors="replace")
    lines = content.splitlines()

    name = unit_name(extract_package(lines), file_path)
    references = extract_imports(lines)
    logger.debug("Scanned %s as %s (%d import(s))", file_path, name, len(references))

    return SourceUnit(name=name, references=references, path=file_path)
