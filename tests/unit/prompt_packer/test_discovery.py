from pathlib import Path

import pytest

from prompt_packer.discovery import build_ignore_spec, discover, list_directories, normalize_globs, relpath
from prompt_packer.exceptions import RootNotFoundError
from prompt_packer.settings import PackerSettings


def _rels(paths: list[Path], root: Path) -> list[str]:
    return [relpath(p, root) for p in paths]


@pytest.mark.unit
def test_normalize_globs_strips_normalizes_and_deduplicates() -> None:
    globs = ["  src/**/*.py ", "\\tests\\*.py", "", "src/**/*.py"]

    assert normalize_globs(globs) == ["src/**/*.py", "/tests/*.py"]


@pytest.mark.unit
def test_ignore_spec_matches_defaults_at_any_depth() -> None:
    spec = build_ignore_spec([])

    assert spec.match_file("logo.png")
    assert spec.match_file("assets/img/logo.png")
    assert spec.match_file("node_modules/pkg/index.js")
    assert spec.match_file("config/.env")
    assert spec.match_file("app.min.js")
    assert not spec.match_file("src/app.js")


@pytest.mark.unit
def test_discover_returns_eligible_files(project: Path) -> None:
    files = discover(project, PackerSettings())

    assert _rels(files, project.resolve()) == ["a/x.ts", "b/readme"]
    assert all(p.is_absolute() for p in files)


@pytest.mark.unit
def test_discover_applies_user_patterns_and_size_cap(project: Path) -> None:
    (project / "big.txt").write_text("x" * 100, encoding="utf-8")

    files = discover(project, PackerSettings(ignore_patterns=["b/**"], max_file_size=60))

    assert _rels(files, project.resolve()) == ["a/x.ts"]


@pytest.mark.unit
def test_discover_skips_hidden_binary_and_symlinks(project: Path) -> None:
    (project / ".hidden").mkdir()
    (project / ".hidden" / "inside.py").write_text("print(1)\n", encoding="utf-8")
    (project / ".gitignore").write_text("*.pyc\n", encoding="utf-8")
    (project / "blob").write_bytes(b"\x00\x01\x02")
    (project / "link.ts").symlink_to(project / "a" / "x.ts")

    files = discover(project, PackerSettings())

    assert _rels(files, project.resolve()) == ["a/x.ts", "b/readme"]


@pytest.mark.unit
def test_discover_missing_root_raises(tmp_path: Path) -> None:
    with pytest.raises(RootNotFoundError):
        discover(tmp_path / "nope", PackerSettings())


@pytest.mark.unit
def test_list_directories_ignores_only_system_dirs(project: Path) -> None:
    (project / "empty" / "nested").mkdir(parents=True)
    (project / "node_modules" / "pkg").mkdir(parents=True)
    (project / ".git").mkdir()

    dirs = list_directories(project)

    assert dirs == {"a", "b", "empty", "empty/nested"}
