"""Whisker configuration.

WhiskerConfig is the central configuration object, frozen after creation.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

DEFAULT_TEXT_EXTENSIONS: tuple[str, ...] = (
    "css", "erb", "haml", "htm", "html", "js", "kida", "less", "markdown",
    "md", "php", "rss", "sass", "scss", "txt", "xhtml", "xml", "yaml",
)


@dataclass(frozen=True, slots=True)
class WhiskerConfig:
    """Configuration for a whisker site.

    Attributes:
        root: Path to the site root directory (contains content/, layouts/, etc.).
              Always resolved to an absolute path on construction.
        output_dir: Output directory for compiled files.
        content_dir: Directory containing item sources.
        layouts_dir: Directory containing layouts.
        lib_dir: Directory containing auxiliary Python code (custom filters).
        rules_file: File holding compile, route and layout rules.
        text_extensions: Source extensions loaded as textual items; everything
            else is loaded as a binary item.
        index_filenames: Output filenames stripped from web-facing paths.
        enable_output_diff: Write ``output.diff`` after each compilation.
        extra: Any other settings, exposed to filters as ``config``.

    """

    root: Path = field(default_factory=Path.cwd)
    output_dir: Path = field(default_factory=lambda: Path("output"))
    content_dir: str = "content"
    layouts_dir: str = "layouts"
    lib_dir: str = "lib"
    rules_file: str = "rules.yaml"
    text_extensions: tuple[str, ...] = DEFAULT_TEXT_EXTENSIONS
    index_filenames: tuple[str, ...] = ("index.html",)
    enable_output_diff: bool = False
    extra: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Resolve root to absolute so that watchfiles (which returns
        # absolute paths) can be compared via Path.relative_to().
        if not self.root.is_absolute():
            object.__setattr__(self, "root", self.root.resolve())

    @property
    def content_path(self) -> Path:
        """Absolute path to content directory."""
        return self.root / self.content_dir

    @property
    def layouts_path(self) -> Path:
        """Absolute path to layouts directory."""
        return self.root / self.layouts_dir

    @property
    def lib_path(self) -> Path:
        """Absolute path to auxiliary code directory."""
        return self.root / self.lib_dir

    @property
    def rules_path(self) -> Path:
        """Absolute path to the rules file."""
        return self.root / self.rules_file

    @property
    def output_path(self) -> Path:
        """Absolute path to output directory."""
        if self.output_dir.is_absolute():
            return self.output_dir
        return self.root / self.output_dir

    def is_text_extension(self, extension: str) -> bool:
        """Whether files with *extension* (with or without the dot) are textual."""
        return extension.lstrip(".").lower() in self.text_extensions
