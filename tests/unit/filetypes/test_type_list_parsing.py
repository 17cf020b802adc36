from __future__ import annotations

import stat
import sys
from pathlib import Path

import pytest

from rg_engine.filetypes import FileType, TypeCatalogError, parse_type_list, query_type_catalog

TYPE_LIST = """\
agda: *.agda, *.lagda
c: *.[chH], *.[chH].in, *.cats

make: *.mak, *.mk, GNUmakefile, Makefile, gnumakefile, makefile
not a type line
"""


def test_parse_type_list_reads_names_and_globs() -> None:
    catalog = parse_type_list(TYPE_LIST)

    assert catalog == (
        FileType("agda", ("*.agda", "*.lagda")),
        FileType("c", ("*.[chH]", "*.[chH].in", "*.cats")),
        FileType(
            "make",
            ("*.mak", "*.mk", "GNUmakefile", "Makefile", "gnumakefile", "makefile"),
        ),
    )


def test_parsed_entries_match_their_globs() -> None:
    catalog = {entry.name: entry for entry in parse_type_list(TYPE_LIST)}

    assert catalog["c"].matches("main.h")
    assert catalog["make"].matches("Makefile")
    assert not catalog["agda"].matches("main.h")


def _write_script(path: Path, body: str) -> Path:
    path.write_text(f"#!{sys.executable}\n{body}", encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR)
    return path


@pytest.mark.skipif(sys.platform == "win32", reason="shebang scripts are POSIX only")
def test_query_type_catalog_runs_executable(tmp_path: Path) -> None:
    script = _write_script(
        tmp_path / "fake-rg",
        "import sys\n"
        "assert sys.argv[1:] == ['--type-list']\n"
        "print('py: *.py, *.pyi')\n"
        "print('rust: *.rs')\n",
    )

    catalog = query_type_catalog(str(script))

    assert [entry.name for entry in catalog] == ["py", "rust"]


@pytest.mark.skipif(sys.platform == "win32", reason="shebang scripts are POSIX only")
def test_query_type_catalog_reports_non_zero_exit(tmp_path: Path) -> None:
    script = _write_script(
        tmp_path / "broken-rg",
        "import sys\nsys.stderr.write('unsupported flag\\n')\nsys.exit(2)\n",
    )

    with pytest.raises(TypeCatalogError, match="unsupported flag"):
        query_type_catalog(str(script))


def test_query_type_catalog_missing_executable(tmp_path: Path) -> None:
    with pytest.raises(TypeCatalogError, match="Could not run"):
        query_type_catalog(str(tmp_path / "does-not-exist"))
