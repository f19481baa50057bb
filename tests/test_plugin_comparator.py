import asyncio
import json
import os
from unittest.mock import patch

import pytest

from wordpress_org_mcp.architecture import plugin_comparator
from wordpress_org_mcp.architecture.plugin_comparator import (
    FileStatus,
    PluginComparator,
    create_patch,
    list_plugin_files,
    path_sort_key,
)


@pytest.fixture
def comparator():
    return PluginComparator()


def compare(comparator, local, remote):
    return asyncio.run(comparator.compare_plugins(local, remote))


def assert_summary_consistent(comparison):
    summary = comparison.summary
    assert summary.total == summary.identical + summary.different + summary.local_only + summary.remote_only
    assert summary.total == len(comparison.files)
    paths = [entry.file for entry in comparison.files]
    assert paths == sorted(paths, key=path_sort_key)
    assert len(set(paths)) == len(paths)


# ---------------------------------------------------------------------------
# Directory enumeration
# ---------------------------------------------------------------------------

def test_list_plugin_files_returns_relative_posix_paths(make_tree):
    root = make_tree("plugin", {
        "main.php": "<?php",
        "inc/helpers.php": "<?php",
        "assets/css/style.css": "body {}",
    })

    files = asyncio.run(list_plugin_files(root))

    assert sorted(files) == ["assets/css/style.css", "inc/helpers.php", "main.php"]


def test_list_plugin_files_skips_directories(make_tree, tmp_path):
    root = make_tree("plugin", {"main.php": "x"})
    os.makedirs(os.path.join(root, "empty", "nested"))

    assert asyncio.run(list_plugin_files(root)) == ["main.php"]


def test_list_plugin_files_missing_root_is_empty(tmp_path):
    assert asyncio.run(list_plugin_files(str(tmp_path / "does-not-exist"))) == []


def test_list_plugin_files_tolerates_unreadable_subdirectory(make_tree):
    root = make_tree("plugin", {"main.php": "x", "locked/secret.php": "y"})
    locked = os.path.join(root, "locked")
    real_scan = plugin_comparator._scan_directory

    def flaky_scan(directory):
        if directory == locked:
            denied = PermissionError(13, "Permission denied", directory)
            with patch("os.scandir", side_effect=denied):
                return real_scan(directory)
        return real_scan(directory)

    with patch.object(plugin_comparator, "_scan_directory", side_effect=flaky_scan):
        files = asyncio.run(list_plugin_files(root))

    assert files == ["main.php"]


def test_scan_directory_on_a_file_contributes_nothing(make_tree):
    root = make_tree("plugin", {"main.php": "x"})

    assert plugin_comparator._scan_directory(os.path.join(root, "main.php")) == ([], [])


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------

def test_identical_plugins(comparator, make_tree):
    local = make_tree("local", {"main.php": "A"})
    remote = make_tree("remote", {"main.php": "A"})

    comparison = compare(comparator, local, remote)

    assert comparison.summary.to_dict() == {
        "identical": 1, "different": 0, "localOnly": 0, "remoteOnly": 0, "total": 1,
    }
    entry = comparison.files[0]
    assert entry.status is FileStatus.IDENTICAL
    assert entry.local_size == 1
    assert entry.remote_size == 1
    assert entry.diff is None


def test_different_text_files_produce_diff(comparator, make_tree):
    local = make_tree("local", {"main.php": "local"})
    remote = make_tree("remote", {"main.php": "remote"})

    comparison = compare(comparator, local, remote)

    assert comparison.summary.different == 1
    assert comparison.summary.total == 1
    entry = comparison.files[0]
    assert entry.status is FileStatus.DIFFERENT
    assert "-remote" in entry.diff
    assert "+local" in entry.diff
    assert entry.local_size == 5
    assert entry.remote_size == 6


def test_diff_reads_from_published_to_local(comparator, make_tree):
    local = make_tree("local", {"inc/h.php": "one\ntwo\nthree\n"})
    remote = make_tree("remote", {"inc/h.php": "one\n2\nthree\n"})

    entry = compare(comparator, local, remote).files[0]

    lines = entry.diff.splitlines()
    assert lines[0] == "Index: inc/h.php"
    assert lines[2] == "--- inc/h.php\tWordPress.org"
    assert lines[3] == "+++ inc/h.php\tLocal"
    assert "-2" in lines
    assert "+two" in lines
    assert " one" in lines


def test_local_only_file(comparator, make_tree):
    local = make_tree("local", {"a.php": "x"})
    remote = make_tree("remote", {})

    comparison = compare(comparator, local, remote)

    assert comparison.summary.local_only == 1
    assert comparison.summary.total == 1
    entry = comparison.files[0]
    assert entry.status is FileStatus.LOCAL_ONLY
    assert entry.local_size == 1
    assert entry.remote_size is None
    assert entry.diff is None


def test_remote_only_file(comparator, make_tree):
    local = make_tree("local", {})
    remote = make_tree("remote", {"b.php": "y"})

    comparison = compare(comparator, local, remote)

    assert comparison.summary.remote_only == 1
    assert comparison.summary.total == 1
    entry = comparison.files[0]
    assert entry.status is FileStatus.REMOTE_ONLY
    assert entry.remote_size == 1
    assert entry.local_size is None
    assert entry.diff is None


def test_mixed_tree(comparator, make_tree):
    local = make_tree("local", {"main.php": "same", "inc/h.php": "L"})
    remote = make_tree("remote", {"main.php": "same", "inc/h.php": "R", "lib/x.php": "Z"})

    comparison = compare(comparator, local, remote)

    assert comparison.summary.to_dict() == {
        "identical": 1, "different": 1, "localOnly": 0, "remoteOnly": 1, "total": 3,
    }
    assert [entry.file for entry in comparison.files] == ["inc/h.php", "lib/x.php", "main.php"]
    assert_summary_consistent(comparison)


def test_complex_directory_structure(comparator, make_tree):
    local = make_tree("local", {
        "main.php": "identical",
        "includes/helper.php": "local helper",
        "assets/style.css": "local only",
    })
    remote = make_tree("remote", {
        "main.php": "identical",
        "includes/helper.php": "remote helper",
        "lib/library.php": "remote only",
    })

    comparison = compare(comparator, local, remote)

    summary = comparison.summary
    assert (summary.identical, summary.different, summary.local_only, summary.remote_only) == (1, 1, 1, 1)
    assert summary.total == 4
    assert_summary_consistent(comparison)


def test_missing_local_root_reports_everything_remote_only(comparator, make_tree, tmp_path):
    remote = make_tree("remote", {"a.php": "1", "b/c.php": "2"})

    comparison = compare(comparator, str(tmp_path / "nope"), remote)

    assert comparison.summary.remote_only == 2
    assert comparison.summary.total == 2
    assert all(entry.status is FileStatus.REMOTE_ONLY for entry in comparison.files)


def test_both_roots_missing_yields_empty_comparison(comparator, tmp_path):
    comparison = compare(comparator, str(tmp_path / "a"), str(tmp_path / "b"))

    assert comparison.files == ()
    assert comparison.summary.total == 0


# ---------------------------------------------------------------------------
# Binary / unreadable fallback
# ---------------------------------------------------------------------------

def test_binary_files_same_size_are_identical(comparator, make_tree):
    local = make_tree("local", {"logo.png": b"\x89PNG\xff\xfe\x00\x01"})
    remote = make_tree("remote", {"logo.png": b"\x89PNG\xff\xfe\x00\x02"})

    entry = compare(comparator, local, remote).files[0]

    assert entry.status is FileStatus.IDENTICAL
    assert entry.diff is None
    assert entry.local_size == entry.remote_size == 8


def test_binary_files_different_size_are_different(comparator, make_tree):
    local = make_tree("local", {"logo.png": b"\x89PNG\xff\xfe"})
    remote = make_tree("remote", {"logo.png": b"\x89PNG\xff\xfe\x00"})

    entry = compare(comparator, local, remote).files[0]

    assert entry.status is FileStatus.DIFFERENT
    assert entry.diff is None
    assert entry.local_size == 6
    assert entry.remote_size == 7


def test_one_side_binary_falls_back_to_size(comparator, make_tree):
    local = make_tree("local", {"data.txt": "abc"})
    remote = make_tree("remote", {"data.txt": b"\xff\xfe\xfd"})

    entry = compare(comparator, local, remote).files[0]

    assert entry.status is FileStatus.IDENTICAL
    assert entry.diff is None


def test_failed_stat_leaves_size_absent(comparator, make_tree):
    local = make_tree("local", {"a.php": "x"})
    remote = make_tree("remote", {})

    with patch.object(plugin_comparator, "_stat_size", return_value=None):
        entry = compare(comparator, local, remote).files[0]

    assert entry.status is FileStatus.LOCAL_ONLY
    assert entry.local_size is None
    assert "localSize" not in entry.to_dict()


# ---------------------------------------------------------------------------
# Serialization and ordering
# ---------------------------------------------------------------------------

def test_to_dict_uses_camel_case_and_omits_absent_fields(comparator, make_tree):
    local = make_tree("local", {"a.php": "x", "same.php": "s"})
    remote = make_tree("remote", {"b.php": "y", "same.php": "s"})

    data = compare(comparator, local, remote).to_dict()

    assert data["localPath"] == local
    assert data["remotePath"] == remote
    assert data["files"] == [
        {"file": "a.php", "status": "local_only", "localSize": 1},
        {"file": "b.php", "status": "remote_only", "remoteSize": 1},
        {"file": "same.php", "status": "identical", "localSize": 1, "remoteSize": 1},
    ]
    assert data["summary"] == {"identical": 1, "different": 0, "localOnly": 1, "remoteOnly": 1, "total": 3}
    json.dumps(data)


def test_files_are_sorted_regardless_of_completion_order(make_tree):
    names = {f"f{i:02d}.php": str(i) for i in range(20)}
    local = make_tree("local", names)
    remote = make_tree("remote", dict(reversed(list(names.items()))))

    comparison = compare(PluginComparator(max_concurrency=3), local, remote)

    assert [entry.file for entry in comparison.files] == sorted(names)
    assert comparison.summary.identical == 20


def test_files_sort_case_insensitively(comparator, make_tree):
    local = make_tree("local", {"README.txt": "r", "admin.php": "a"})
    remote = make_tree("remote", {"Zeta.php": "z", "beta.php": "b"})

    comparison = compare(comparator, local, remote)

    assert [entry.file for entry in comparison.files] == ["admin.php", "beta.php", "README.txt", "Zeta.php"]


def test_path_sort_key_puts_lowercase_first_on_ties():
    assert sorted(["README.txt", "readme.txt", "Readme.txt"], key=path_sort_key) == [
        "readme.txt",
        "Readme.txt",
        "README.txt",
    ]


def test_get_file(comparator, make_tree):
    local = make_tree("local", {"a.php": "x"})
    remote = make_tree("remote", {"a.php": "y"})

    comparison = compare(comparator, local, remote)

    assert comparison.get_file("a.php").status is FileStatus.DIFFERENT
    assert comparison.get_file("missing.php") is None


# ---------------------------------------------------------------------------
# Patch rendering
# ---------------------------------------------------------------------------

def test_create_patch_marks_missing_trailing_newline():
    patch_text = create_patch("main.php", "remote", "local")

    assert patch_text.splitlines() == [
        "Index: main.php",
        "=" * 67,
        "--- main.php\tWordPress.org",
        "+++ main.php\tLocal",
        "@@ -1 +1 @@",
        "-remote",
        "\\ No newline at end of file",
        "+local",
        "\\ No newline at end of file",
    ]


def test_create_patch_with_trailing_newlines():
    patch_text = create_patch("readme.txt", "a\nb\n", "a\nc\n")

    assert "\\ No newline" not in patch_text
    assert patch_text.endswith("-b\n+c\n")


def test_create_patch_keeps_line_separators_inside_lines():
    patch_text = create_patch("a.js", "var s='x\u2028y';\nold\n", "var s='x\u2028y';\nnew\n")

    assert "\\ No newline" not in patch_text
    assert patch_text.split("\n")[4:] == [
        "@@ -1,2 +1,2 @@",
        " var s='x\u2028y';",
        "-old",
        "+new",
        "",
    ]


def test_create_patch_carriage_return_only_file_is_one_line():
    patch_text = create_patch("a.php", "a\rb\r", "a\rc\r")

    assert patch_text.split("\n")[4:] == [
        "@@ -1 +1 @@",
        "-a\rb\r",
        "\\ No newline at end of file",
        "+a\rc\r",
        "\\ No newline at end of file",
        "",
    ]
