from pathlib import Path

import pytest

from prompt_packer.classifier import is_eligible_text, is_printable_sample, sniff_text


@pytest.mark.unit
def test_empty_file_is_text(tmp_path: Path) -> None:
    f = tmp_path / "blob"
    f.write_bytes(b"")

    assert is_eligible_text(f)


@pytest.mark.unit
def test_null_byte_makes_unknown_file_binary(tmp_path: Path) -> None:
    f = tmp_path / "data.xyz"
    f.write_bytes(b"hello\x00world")

    assert not is_eligible_text(f)


@pytest.mark.unit
def test_known_extension_short_circuits_sniffing(tmp_path: Path) -> None:
    f = tmp_path / "notes.md"
    f.write_bytes(b"# title\x00\x01\x02")

    assert is_eligible_text(f)


@pytest.mark.unit
def test_special_filename_without_extension_is_text(tmp_path: Path) -> None:
    f = tmp_path / "Dockerfile"
    f.write_bytes(b"\x00\x01")

    assert is_eligible_text(f)


@pytest.mark.unit
def test_printable_ratio_threshold() -> None:
    mostly_text = b"a" * 81 + b"\x01" * 19
    exactly_80 = b"a" * 80 + b"\x01" * 20

    assert is_printable_sample(mostly_text)
    assert not is_printable_sample(exactly_80)
    assert is_printable_sample(b"\tline\r\n")


@pytest.mark.unit
def test_only_first_512_bytes_are_sampled(tmp_path: Path) -> None:
    f = tmp_path / "tail_null"
    f.write_bytes(b"x" * 512 + b"\x00")

    assert sniff_text(f)


@pytest.mark.unit
def test_unreadable_file_is_not_eligible(tmp_path: Path) -> None:
    assert not is_eligible_text(tmp_path / "missing.bin")
