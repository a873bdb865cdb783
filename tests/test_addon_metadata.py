import pytest

from addonstore.addons.metadata import extract_dependency, parse_dependencies
from addonstore.errors import MetadataMissingError


def _write_manifest(root, name, content):
    root.mkdir(parents=True, exist_ok=True)
    (root / name).write_text(content)


def test_depends_on_tokens_have_version_suffix_stripped(tmp_path):
    addon = tmp_path / "Foo"
    _write_manifest(addon, "Foo.txt", "## Title: Foo\n## DependsOn: LibA>=2.0 LibB\n## Version: 1\n")

    assert parse_dependencies(str(addon), "Foo") == ["LibA", "LibB"]


def test_manifest_name_matches_case_insensitively(tmp_path):
    addon = tmp_path / "FooBar"
    _write_manifest(addon, "foobar.txt", "## DependsOn: LibAddonMenu-2.0>=32\n")

    assert parse_dependencies(str(addon), "FooBar") == ["LibAddonMenu-2.0"]


def test_no_marker_line_means_no_dependencies(tmp_path):
    addon = tmp_path / "Foo"
    _write_manifest(addon, "Foo.txt", "## Title: Foo\n## OptionalDependsOn: LibC\n")

    assert parse_dependencies(str(addon), "Foo") == []


def test_crlf_and_extra_whitespace(tmp_path):
    addon = tmp_path / "Foo"
    (tmp_path / "Foo").mkdir()
    (addon / "Foo.txt").write_bytes(b"\xef\xbb\xbf## DependsOn:  LibA<3   LibB=1\r\n")

    assert parse_dependencies(str(addon), "Foo") == ["LibA", "LibB"]


def test_missing_manifest_raises(tmp_path):
    addon = tmp_path / "FooData"
    addon.mkdir()

    with pytest.raises(MetadataMissingError) as exc_info:
        parse_dependencies(str(addon), "FooData")

    assert exc_info.value.addon_name == "FooData"


@pytest.mark.parametrize(
    "token, expected",
    [
        ("LibA", "LibA"),
        ("LibA>=2.0", "LibA"),
        ("LibA=3", "LibA"),
        ("LibA<4", "LibA"),
        ("LibAddonMenu-2.0", "LibAddonMenu-2.0"),
    ],
)
def test_extract_dependency(token, expected):
    assert extract_dependency(token) == expected
