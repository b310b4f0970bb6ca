import ast
import subprocess
import sys
import textwrap
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]


def _offending_imports(package_dir: Path, forbidden_prefixes: tuple[str, ...]) -> list[str]:
    offenders: list[str] = []
    for path in sorted(package_dir.rglob("*.py")):
        tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
        for node in ast.walk(tree):
            if isinstance(node, ast.Import):
                for alias in node.names:
                    name = alias.name
                    if name.startswith(forbidden_prefixes):
                        offenders.append(f"{path}: import {name}")
            elif isinstance(node, ast.ImportFrom):
                if node.module is None:
                    continue
                module = node.module
                if module.startswith(forbidden_prefixes):
                    offenders.append(f"{path}: from {module} import ...")
    return offenders


def test_pipekit_source_does_not_import_releaser():
    assert _offending_imports(REPO_ROOT / "pipekit", ("releaser",)) == []


def test_foundation_does_not_import_framework_stages_or_app():
    forbidden_prefixes = ("releaser.framework", "releaser.stages", "releaser.app")

    assert _offending_imports(REPO_ROOT / "releaser" / "foundation", forbidden_prefixes) == []


def test_framework_source_does_not_import_stages_or_app():
    forbidden_prefixes = ("releaser.stages", "releaser.app")

    assert _offending_imports(REPO_ROOT / "releaser" / "framework", forbidden_prefixes) == []


def test_stages_source_does_not_import_app():
    assert _offending_imports(REPO_ROOT / "releaser" / "stages", ("releaser.app", "releaser.cli")) == []


def test_loading_every_pipekit_module_leaves_releaser_unloaded():
    code = textwrap.dedent(
        """\
        import importlib
        import pkgutil
        import sys

        import pipekit

        modules = [info.name for info in pkgutil.walk_packages(pipekit.__path__, "pipekit.")]
        for name in modules:
            importlib.import_module(name)

        leaked = sorted(name for name in sys.modules if name == "releaser" or name.startswith("releaser."))
        if leaked:
            raise SystemExit(f"pipekit modules {modules} loaded {leaked}")
        """
    )

    proc = subprocess.run([sys.executable, "-c", code], capture_output=True, text=True, cwd=str(REPO_ROOT))

    assert proc.returncode == 0, proc.stderr or proc.stdout
