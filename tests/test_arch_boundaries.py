from __future__ import annotations

import ast
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

# Operation modules (public entry points).
# Building blocks under gzcodec.core must NEVER import these: the filters and the
# pool are shared by the blocking and asyncio paths and must stay I/O-policy free.
OPS_PREFIXES: tuple[str, ...] = (
    "gzcodec.codec",
    "gzcodec.async_stream",
    "gzcodec.envelope",
    "gzcodec.options",
)

CORE_PREFIX = "gzcodec.core"
PACKAGE_ROOT = "gzcodec"


@dataclass(frozen=True)
class ImportEdge:
    src: str
    dst: str
    file: Path
    lineno: int


def _has_prefix(mod: str, prefixes: tuple[str, ...]) -> bool:
    return any(mod == p or mod.startswith(p + ".") for p in prefixes)


def _module_name_from_path(src_dir: Path, py_file: Path) -> str | None:
    rel = py_file.relative_to(src_dir)
    parts = list(rel.parts)
    if not parts or parts[0] != PACKAGE_ROOT:
        return None
    if py_file.name == "__init__.py":
        parts = parts[:-1]
    else:
        parts[-1] = py_file.stem
    return ".".join(parts) if parts else None


def _resolve_relative(current_mod: str, level: int, module: str | None) -> str | None:
    if level <= 0:
        return module
    base = current_mod.split(".")[:-1]
    if level > len(base):
        return None
    base = base[: len(base) - level + 1]
    if module:
        return ".".join(base + module.split("."))
    return ".".join(base)


def _iter_import_edges(src_dir: Path) -> Iterable[ImportEdge]:
    for py in src_dir.rglob("*.py"):
        mod = _module_name_from_path(src_dir, py)
        if not mod:
            continue

        tree = ast.parse(py.read_text(encoding="utf-8"), filename=str(py))

        for node in ast.walk(tree):
            if isinstance(node, ast.Import):
                for alias in node.names:
                    if alias.name.startswith(PACKAGE_ROOT + "."):
                        yield ImportEdge(mod, alias.name, py, getattr(node, "lineno", 0))
            elif isinstance(node, ast.ImportFrom):
                abs_mod = _resolve_relative(mod, node.level, node.module)
                if abs_mod and abs_mod.startswith(PACKAGE_ROOT + "."):
                    yield ImportEdge(mod, abs_mod, py, getattr(node, "lineno", 0))


def _src_dir() -> Path:
    src_dir = Path(__file__).resolve().parents[1] / "src"
    if not src_dir.is_dir():
        raise AssertionError(f"Expected src/ directory at: {src_dir}")
    return src_dir


def test_core_never_imports_operation_modules() -> None:
    violations = [
        e
        for e in _iter_import_edges(_src_dir())
        if e.src.startswith(CORE_PREFIX + ".") and _has_prefix(e.dst, OPS_PREFIXES)
    ]

    if violations:
        lines = ["Forbidden imports detected (core -> operations):"]
        for v in sorted(violations, key=lambda e: (str(e.file), e.lineno)):
            lines.append(f"  {v.file}:{v.lineno}  {v.src}  ->  {v.dst}")
        raise AssertionError("\n".join(lines))


def test_codec_does_not_depend_on_envelope() -> None:
    edges = [e for e in _iter_import_edges(_src_dir()) if e.src == "gzcodec.codec"]
    assert edges, "expected gzcodec.codec to import core modules"
    assert not [e for e in edges if _has_prefix(e.dst, ("gzcodec.envelope", "gzcodec.async_stream"))]
