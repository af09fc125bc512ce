"""C# source parser using tree-sitter."""

import logging
from dataclasses import dataclass, field
from pathlib import Path

import tree_sitter_c_sharp
from tree_sitter import Language, Node, Parser

from sourcegen_inlining.errors import ParserError

logger = logging.getLogger(__name__)

_CSHARP_LANGUAGE = Language(tree_sitter_c_sharp.language())
_DEFAULT_ENCODING = "utf-8"


@dataclass(frozen=True)
class SourceDocument:
    """A parsed C# file: its path, text, UTF-8 bytes and syntax tree root.

    Node offsets reported by tree-sitter are byte offsets into ``source_bytes``.
    """

    path: str
    source_code: str
    source_bytes: bytes = field(repr=False)
    root_node: Node = field(repr=False)

    def text(self, node: Node) -> str:
        """Return the exact source text covered by ``node``."""
        return self.source_bytes[node.start_byte : node.end_byte].decode(
            _DEFAULT_ENCODING
        )

    def slice(self, start_byte: int, end_byte: int) -> str:
        """Return the source text between two byte offsets."""
        return self.source_bytes[start_byte:end_byte].decode(_DEFAULT_ENCODING)


class CSharpParser:
    """Parser for C# source code using tree-sitter."""

    _SUPPORTED_EXTENSIONS = [".cs"]

    def __init__(self) -> None:
        """Initialise the parser with the C# grammar."""
        self.parser = Parser(_CSHARP_LANGUAGE)

    def parse_document(self, source_code: str, path: str = "<memory>") -> SourceDocument:
        """Parse source code into a SourceDocument.

        Syntax errors are tolerated: tree-sitter still yields a usable tree,
        and the host compiler reports the errors downstream.
        """
        source_bytes = bytes(source_code, _DEFAULT_ENCODING)
        tree = self.parser.parse(source_bytes)
        if tree.root_node.has_error:
            logger.debug("Parsed %s with syntax errors", path)
        return SourceDocument(
            path=path,
            source_code=source_code,
            source_bytes=source_bytes,
            root_node=tree.root_node,
        )

    def parse_file(self, file_path: Path) -> SourceDocument:
        """Read and parse a C# file from disk.

        Raises:
            ParserError: If the file cannot be read

        """
        try:
            source_code = file_path.read_text(encoding=_DEFAULT_ENCODING)
        except (OSError, UnicodeDecodeError) as e:
            raise ParserError(f"Cannot read source file {file_path}: {e}") from e
        return self.parse_document(source_code, str(file_path))

    @staticmethod
    def is_supported_file(file_path: Path) -> bool:
        """Check if file is supported for parsing.

        Args:
            file_path: Path to check

        Returns:
            True if file extension is supported

        """
        return file_path.suffix.lower() in CSharpParser._SUPPORTED_EXTENSIONS
