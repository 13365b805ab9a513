from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, computed_field

TEXT_EXTENSIONS = frozenset({
    # Programming languages
    ".js", ".ts", ".jsx", ".tsx", ".vue", ".svelte", ".astro", ".py", ".java",
    ".c", ".cpp", ".cc", ".cxx", ".h", ".hpp", ".hxx", ".cs", ".php", ".rb",
    ".go", ".rs", ".swift", ".kt", ".scala", ".clj", ".dart", ".r", ".m", ".mm",
    ".pl", ".sh", ".bash", ".zsh", ".fish", ".lua", ".vim", ".el", ".lisp",
    ".hs", ".ml", ".fs", ".fsx", ".fsi",
    # Web technologies (svg is xml)
    ".html", ".htm", ".xml", ".svg", ".css", ".scss", ".sass", ".less", ".styl",
    ".json", ".yaml", ".yml", ".toml", ".ini", ".cfg", ".conf", ".properties",
    # Documentation and text
    ".md", ".mdx", ".txt", ".rst", ".tex", ".org", ".adoc", ".asciidoc",
    # Configuration and special files
    ".dockerfile", ".gitignore", ".gitattributes", ".editorconfig", ".eslintrc",
    ".prettierrc", ".babelrc", ".browserslistrc", ".nvmrc", ".python-version",
    ".ruby-version", ".node-version",
    # Database and API
    ".sql", ".graphql", ".gql", ".proto", ".prisma",
    # Build and deployment
    ".makefile", ".cmake", ".gradle", ".maven", ".sbt", ".msbuild",
    # Environment
    ".env",
    # Templates
    ".hbs", ".mustache", ".ejs", ".pug", ".jade", ".twig",
    # Data files
    ".csv", ".tsv", ".jsonl", ".ndjson",
})  # fmt: skip

SPECIAL_FILENAMES = frozenset({
    "dockerfile", "makefile", "readme", "license", "changelog", "contributing",
    "authors", "notice", "todo", "copying", "install", "news", "thanks",
    "version", "manifest", "gemfile", "rakefile", "guardfile", "vagrantfile",
    "procfile", "gruntfile", "gulpfile", "webpack",
})  # fmt: skip

SYSTEM_IGNORE_DIRS = frozenset({
    ".git", "node_modules", "dist", "build", "out", "target", "tmp", "temp",
    ".cache", "coverage", ".nyc_output", ".vscode", ".idea",
})  # fmt: skip

DEFAULT_IGNORE_PATTERNS: tuple[str, ...] = (
    # Version control and dependencies
    "**/.git/**", "**/node_modules/**",
    # Generated and build output
    "**/dist/**", "**/build/**", "**/out/**", "**/target/**",
    # Caches and temporary files
    "**/tmp/**", "**/temp/**", "**/.cache/**", "**/coverage/**", "**/.nyc_output/**",
    # IDE folders
    "**/.vscode/**", "**/.idea/**",
    # Binary files
    "**/*.png", "**/*.jpg", "**/*.jpeg", "**/*.gif", "**/*.bmp", "**/*.tiff",
    "**/*.tif", "**/*.webp", "**/*.ico",
    "**/*.mp4", "**/*.avi", "**/*.mov", "**/*.wmv", "**/*.flv", "**/*.webm",
    "**/*.mkv", "**/*.m4v",
    "**/*.mp3", "**/*.wav", "**/*.flac", "**/*.aac", "**/*.ogg", "**/*.m4a", "**/*.wma",
    "**/*.pdf", "**/*.doc", "**/*.docx", "**/*.xls", "**/*.xlsx", "**/*.ppt", "**/*.pptx",
    "**/*.zip", "**/*.rar", "**/*.7z", "**/*.tar", "**/*.gz", "**/*.bz2", "**/*.xz",
    "**/*.exe", "**/*.dll", "**/*.so", "**/*.dylib", "**/*.app", "**/*.deb",
    "**/*.rpm", "**/*.dmg", "**/*.pkg",
    "**/*.bin", "**/*.dat", "**/*.db", "**/*.sqlite", "**/*.sqlite3",
    # Lock files and minified assets
    "**/package-lock.json", "**/yarn.lock", "**/pnpm-lock.yaml",
    "**/*.min.js", "**/*.min.css",
    # Logs
    "**/*.log",
    # Secrets and credentials
    "**/.env", "**/.env.*",
    "**/.ssh/**", "**/id_rsa", "**/id_dsa", "**/known_hosts",
    "**/*.pem", "**/*.key", "**/*.crt", "**/*.cer", "**/*.der", "**/*.p12", "**/*.pfx",
    "**/*credentials*", "**/*credential*", "**/*secret*", "**/*token*",
    "**/*apikey*", "**/*api-key*",
)  # fmt: skip

EXT2LANG: dict[str, str] = {
    ".bash": "bash",
    ".c": "c",
    ".cc": "cpp",
    ".cpp": "cpp",
    ".cs": "csharp",
    ".css": "css",
    ".dockerfile": "dockerfile",
    ".env": "plaintext",
    ".go": "go",
    ".gql": "graphql",
    ".graphql": "graphql",
    ".h": "c",
    ".hpp": "cpp",
    ".htm": "html",
    ".html": "html",
    ".java": "java",
    ".js": "javascript",
    ".json": "json",
    ".jsx": "jsx",
    ".kt": "kotlin",
    ".makefile": "makefile",
    ".md": "markdown",
    ".mdx": "markdown",
    ".php": "php",
    ".py": "python",
    ".rb": "ruby",
    ".rs": "rust",
    ".sass": "sass",
    ".scala": "scala",
    ".scss": "scss",
    ".sh": "bash",
    ".sql": "sql",
    ".svelte": "svelte",
    ".svg": "xml",
    ".swift": "swift",
    ".ts": "typescript",
    ".tsx": "tsx",
    ".vue": "vue",
    ".xml": "xml",
    ".yaml": "yaml",
    ".yml": "yaml",
}

NO_EXTENSION = "no extension"


def estimate_tokens(text: str) -> int:
    """Estimate the token count of `text` at four characters per token, rounded up."""
    return -(-len(text) // 4)


def language_for_extension(extension: str) -> str:
    """Get the code fence language for a file extension.

    Args:
        extension (str): the extension including its dot, in any case (e.g. ".TS")

    Returns:
        str: the fence language identifier, or an empty string if unknown
    """
    return EXT2LANG.get(extension.lower(), "")


class FileRecord(BaseModel):
    """Content and metadata of one file read for the document.

    Attributes:
        rel: Path relative to the project root, with POSIX separators.
        content: Decoded text content.
        size: File size in bytes, as reported by the filesystem.
        lines: Number of newline separated segments in `content`.
        extension: File extension as written on disk (may be empty).
    """

    model_config = ConfigDict(frozen=True)

    rel: str = Field(..., description="File path relative to the project root")
    content: str = Field(..., description="Decoded file content")
    size: int = Field(..., ge=0, description="File size in bytes")
    lines: int = Field(..., ge=1, description="Line count")
    extension: str = Field("", description="File extension, dot included")

    @computed_field
    @property
    def language(self) -> str:
        """Get the suggested code fence language based on the extension."""
        return language_for_extension(self.extension)

    @computed_field
    @property
    def estimated_tokens(self) -> int:
        """Estimated token count of the content."""
        return estimate_tokens(self.content)


class CorpusStats(BaseModel):
    """Aggregate statistics over the files of one document."""

    total_files: int = 0
    total_size: int = 0
    total_lines: int = 0
    estimated_tokens: int = 0
    files_by_type: dict[str, int] = Field(default_factory=dict)
