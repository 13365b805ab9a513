from __future__ import annotations

import io
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from xml.sax.saxutils import escape

from prompt_packer.config import NO_EXTENSION
from prompt_packer.corpus import format_size
from prompt_packer.settings import OutputFormat
from prompt_packer.tree_rendering import render_directory_tree

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from prompt_packer.config import CorpusStats, FileRecord
    from prompt_packer.settings import PackerSettings

SEPARATOR = "=" * 80
TOP_TYPES_LIMIT = 10
LEGEND = "🔖 Legend: ✓=included · ✗=excluded · 📂=folder"
GENERATOR_NAME = "Codebase Prompt Packer"


def now_local() -> datetime:
    """Return the current date and time in the local timezone."""
    return datetime.now(UTC).astimezone()


def format_count(n: int) -> str:
    """Format an integer with thousands separators (e.g. 12345 -> "12,345")."""
    return f"{n:,}"


def top_file_types(stats: CorpusStats, limit: int = TOP_TYPES_LIMIT) -> list[tuple[str, int]]:
    """Return the most frequent extensions, highest count first.

    Args:
        stats (CorpusStats): the statistics holding the extension histogram
        limit (int): maximum number of entries to return

    Returns:
        list[tuple[str, int]]: (display extension, count) pairs; files without an
            extension are shown as "(no ext)"
    """
    ranked = sorted(stats.files_by_type.items(), key=lambda kv: kv[1], reverse=True)[:limit]
    return [("(no ext)" if ext == NO_EXTENSION else ext, count) for ext, count in ranked]


def build_markdown(
    records: Sequence[FileRecord],
    stats: CorpusStats,
    root: Path,
    *,
    settings: PackerSettings,
    full_tree_files: Sequence[Path] | None = None,
    generated_at: datetime | None = None,
) -> str:
    """Build the markdown prompt document.

    The document holds, in order: a project header, an overview of the
    statistics, the top file types with the tree legend, the project
    structure, every file inside a fenced code block, and a footer.

    Args:
        records (Sequence[FileRecord]): the files to include, already sorted
        stats (CorpusStats): statistics computed over `records`
        root (Path): the project root
        settings (PackerSettings): configuration, including:
            - include_file_stats: write a "Size: ... | Lines: ..." line per file
            - estimate_tokens: write the estimated token count
        full_tree_files (Sequence[Path] | None): when given and not empty, render the
            full project structure from these files, annotated with the selection
        generated_at (datetime | None): timestamp for the footer; defaults to now

    Returns:
        str: the markdown document
    """
    stamp = generated_at or now_local()
    project_name = root.name
    out = io.StringIO()

    out.write(f"# 📁 Project: {project_name}\n\n")

    out.write("**📊 Project Overview (Selected Files):**\n")
    out.write(f"- Total Files: {stats.total_files}\n")
    out.write(f"- Total Size: {format_size(stats.total_size)}\n")
    out.write(f"- Total Lines: {format_count(stats.total_lines)}\n")
    if settings.estimate_tokens:
        out.write(f"- Estimated Tokens: ~{format_count(stats.estimated_tokens)} (approx. for LLMs)\n\n")
    else:
        out.write("\n")

    if stats.files_by_type:
        out.write("**📋 Top File Types:**\n")
        for ext, count in top_file_types(stats):
            out.write(f"- {ext}: {count}\n")
        out.write(f"\n{LEGEND}\n\n")

    out.write("## 🌳 Project Structure\n\n")
    out.write("```\n")
    selected = {r.rel for r in records}
    if full_tree_files:
        out.write(render_directory_tree(full_tree_files, root, selected=selected, show_all=True))
    else:
        out.write(render_directory_tree([root / r.rel for r in records], root, selected=selected))
    out.write("\n```\n\n")

    out.write("## 📄 Files Content\n\n")
    out.write("*Files are listed in alphabetical order by path.*\n\n")
    for rec in records:
        out.write(f"{SEPARATOR}\n")
        out.write(f"📄 **{rec.rel}**\n")
        if settings.include_file_stats:
            out.write(f"Size: {format_size(rec.size)} | Lines: {rec.lines}\n")
        out.write(f"{SEPARATOR}\n\n")
        out.write(f"```{rec.language}\n{rec.content}\n```\n\n")

    out.write("---\n")
    out.write(f"*Generated by {GENERATOR_NAME}*\n")
    out.write(
        f"*Total files processed: {stats.total_files} | "
        f"Generated on: {stamp.isoformat(sep=' ', timespec='seconds')}*\n",
    )
    return out.getvalue()


def wrap_xml(markdown: str, project_name: str, generated_at: datetime | None = None) -> str:
    """Wrap a markdown document in a minimal XML envelope.

    The body goes into a CDATA section; any "]]>" inside it is split across two
    sections so the envelope stays well formed.

    Args:
        markdown (str): the document to wrap
        project_name (str): value of the `name` attribute
        generated_at (datetime | None): timestamp for `<generatedAt>`; defaults to now

    Returns:
        str: the XML document
    """
    stamp = (generated_at or now_local()).astimezone(UTC)
    body = markdown.replace("]]>", "]]]]><![CDATA[>")
    name = escape(project_name, {'"': "&quot;"})
    return (
        f'<project name="{name}">\n'
        f"  <generatedAt>{stamp.isoformat(timespec='milliseconds').replace('+00:00', 'Z')}</generatedAt>\n"
        f"  <content><![CDATA[\n{body}\n]]></content>\n"
        "</project>"
    )


def render_document(
    records: Sequence[FileRecord],
    stats: CorpusStats,
    root: Path,
    *,
    settings: PackerSettings,
    full_tree_files: Sequence[Path] | None = None,
    generated_at: datetime | None = None,
) -> str:
    """Build the document in the configured output format.

    Returns:
        str: markdown, or markdown wrapped by `wrap_xml` when `settings.output_format` is xml
    """
    stamp = generated_at or now_local()
    markdown = build_markdown(
        records,
        stats,
        root,
        settings=settings,
        full_tree_files=full_tree_files,
        generated_at=stamp,
    )
    if settings.output_format is OutputFormat.XML:
        return wrap_xml(markdown, root.name, stamp)
    return markdown
