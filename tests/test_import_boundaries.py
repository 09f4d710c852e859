"""
Import boundary guard for src/csvquery/.

Rules:
- services/, infra/ and ingest/ never import the web framework (fastapi,
  starlette); only api/ does.
- infra/ and ingest/ never import api/ or services/.
- ingest/ never imports the database layer.
"""

import ast
from collections.abc import Callable
from pathlib import Path

REPO_ROOT = Path(__file__).parent.parent
PACKAGE_ROOT = REPO_ROOT / "src" / "csvquery"

WEB_FRAMEWORK = ("fastapi", "starlette")


def _file_imports_any(path: Path, is_banned: Callable[[str], bool]) -> bool:
    """Parse *path* with AST and return True if any import matches *is_banned*."""
    tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            if any(is_banned(alias.name) for alias in node.names):
                return True
        elif isinstance(node, ast.ImportFrom):
            if is_banned(node.module or ""):
                return True
    return False


def _violations(subpackage: str, banned_prefixes: tuple[str, ...]) -> list[str]:
    def _is_banned(module_name: str) -> bool:
        return any(
            module_name == prefix or module_name.startswith(prefix + ".")
            for prefix in banned_prefixes
        )

    return [
        py_file.relative_to(REPO_ROOT).as_posix()
        for py_file in sorted((PACKAGE_ROOT / subpackage).rglob("*.py"))
        if _file_imports_any(py_file, _is_banned)
    ]


def test_only_api_imports_web_framework() -> None:
    violations = [
        v for sub in ("services", "infra", "ingest") for v in _violations(sub, WEB_FRAMEWORK)
    ]
    assert not violations, (
        "Only csvquery.api may import fastapi/starlette:\n"
        + "\n".join(f"  {v}" for v in violations)
    )


def test_lower_layers_do_not_import_upper_layers() -> None:
    upper = ("csvquery.api", "csvquery.services")
    violations = _violations("infra", upper) + _violations("ingest", upper)
    assert not violations, (
        "infra/ and ingest/ must not import api/ or services/:\n"
        + "\n".join(f"  {v}" for v in violations)
    )


def test_ingest_does_not_touch_the_database() -> None:
    violations = _violations("ingest", ("sqlalchemy", "sqlite3", "csvquery.infra"))
    assert not violations, (
        "ingest/ must not import the database layer:\n"
        + "\n".join(f"  {v}" for v in violations)
    )
