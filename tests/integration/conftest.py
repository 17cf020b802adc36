from __future__ import annotations

import stat
import sys
from pathlib import Path

import pytest

FAKE_RG = '''\
import os
import sys
import time

RESET = "\\x1b[0m"
args = sys.argv[1:]
if args == ["--type-list"]:
    print("md: *.md, *.markdown")
    print("markdown: *.md, *.markdown")
    print("py: *.py, *.pyi")
    print("python: *.py, *.pyi")
    sys.exit(0)

split = args.index("--")
flags = args[:split]
term, root = args[split + 1 :]
if term == "__slow__":
    print("warming up", flush=True)
    while True:
        time.sleep(0.05)
if term == "__broken__":
    sys.stderr.write("rg: regex parse error: unclosed group\\n")
    sys.exit(2)

fold = "--ignore-case" in flags
wanted = term.lower() if fold else term
found = False
for dirpath, dirnames, filenames in os.walk(root):
    dirnames.sort()
    for name in sorted(filenames):
        if "--type=py" in flags and not name.endswith(".py"):
            continue
        path = os.path.join(dirpath, name)
        with open(path, encoding="utf-8") as handle:
            for number, line in enumerate(handle, start=1):
                line = line.rstrip("\\n")
                haystack = line.lower() if fold else line
                index = haystack.find(wanted)
                if index < 0:
                    continue
                found = True
                hit = line[index : index + len(term)]
                coded = (
                    line[:index] + RESET + "\\x1b[1m\\x1b[31m" + hit + RESET
                    + line[index + len(term) :]
                )
                sys.stdout.write(
                    f"{RESET}\\x1b[35m{path}{RESET}:{RESET}\\x1b[32m{number}{RESET}:{coded}\\n"
                )
sys.stdout.flush()
sys.exit(0 if found else 1)
'''


@pytest.fixture
def fake_rg(tmp_path: Path) -> Path:
    """Executable script that answers like ripgrep with --color=ansi output."""
    if sys.platform == "win32":
        pytest.skip("shebang scripts are POSIX only")
    script = tmp_path / "bin" / "fake-rg"
    script.parent.mkdir()
    script.write_text(f"#!{sys.executable}\n{FAKE_RG}", encoding="utf-8")
    script.chmod(script.stat().st_mode | stat.S_IXUSR)
    return script


@pytest.fixture
def search_tree(tmp_path: Path) -> Path:
    tree = tmp_path / "tree"
    (tree / "src").mkdir(parents=True)
    (tree / "docs").mkdir()
    (tree / "src" / "app.py").write_text(
        "import os\n\ndef parse_token(text):\n    return text.strip()\n",
        encoding="utf-8",
    )
    (tree / "docs" / "guide.md").write_text("Token parsing guide\n", encoding="utf-8")
    return tree
