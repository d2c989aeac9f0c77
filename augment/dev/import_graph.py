"""AST based import graph for layering guardrails.

Collects edges between project-internal modules under one package root.
Used in tests to enforce:
  - No cycles between augment modules.
  - No forbidden edges (the core never reaches into the feature layer).
"""
from __future__ import annotations

import ast
from pathlib import Path
from typing import Dict, Iterable, List, Set, Tuple


def _module_name(py: Path, root_path: Path, package: str) -> str:
    rel = py.relative_to(root_path).with_suffix("").as_posix()
    if rel.endswith("/__init__") or rel == "__init__":
        rel = rel[: -len("__init__")].rstrip("/")
    return ".".join(p for p in (package, rel.replace("/", ".")) if p)


def build_import_graph(
    root: str | Path,
    package: str | None = None,
    track: Iterable[str] | None = None,
) -> Dict[str, Set[str]]:
    """Edges module -> imported module for imports starting with `track`.

    `package` defaults to the root directory name; `track` defaults to
    (package,).
    """
    root_path = Path(root)
    package = package or root_path.name
    prefixes = tuple(track or (package,))
    edges: Dict[str, Set[str]] = {}
    for py in sorted(root_path.rglob("*.py")):
        if "__pycache__" in py.parts:
            continue
        src = _module_name(py, root_path, package)
        edges.setdefault(src, set())
        try:
            tree = ast.parse(py.read_text(encoding="utf-8"))
        except SyntaxError:
            continue
        for node in ast.walk(tree):
            if isinstance(node, ast.Import):
                names = [n.name for n in node.names]
            elif isinstance(node, ast.ImportFrom) and node.module:
                if node.level:
                    continue
                names = [node.module]
            else:
                continue
            for name in names:
                if name == src or not name.startswith(prefixes):
                    continue
                edges[src].add(name)
    for n in list(edges.keys()):
        for dst in edges[n]:
            edges.setdefault(dst, set())
    return edges


def detect_cycles(graph: Dict[str, Set[str]]) -> List[List[str]]:
    visited: Set[str] = set()
    stack: Set[str] = set()
    cycles: List[List[str]] = []

    def dfs(node: str, path: List[str]):
        if node in stack:
            if node in path:
                idx = path.index(node)
                cycles.append(path[idx:] + [node])
            return
        if node in visited:
            return
        visited.add(node)
        stack.add(node)
        for nxt in sorted(graph.get(node, [])):
            dfs(nxt, path + [nxt])
        stack.remove(node)

    for n in sorted(graph):
        if n not in visited:
            dfs(n, [n])
    return cycles


def forbidden_edges(
    graph: Dict[str, Set[str]], rules: List[Tuple[str, str]]
) -> List[Tuple[str, str]]:
    found: List[Tuple[str, str]] = []
    for src, targets in graph.items():
        for dst in targets:
            for a, b in rules:
                if src.startswith(a) and dst.startswith(b):
                    found.append((src, dst))
    return found


__all__ = [
    "build_import_graph",
    "detect_cycles",
    "forbidden_edges",
]
