"""Best-effort import/reference detection between changed files.

Only relationships between files in the change-set matter, so every
reference is resolved against the set of candidate paths and anything
that does not resolve is dropped. Unsupported languages simply yield
no references.
"""

from __future__ import annotations

import posixpath
import re
from pathlib import PurePosixPath
from typing import Dict, Iterable, Mapping, Set

_PY_IMPORT_RE = re.compile(r"^[ \t]*import[ \t]+([\w.]+(?:[ \t]*,[ \t]*[\w.]+)*)", re.MULTILINE)
_PY_FROM_RE = re.compile(
    r"^[ \t]*from[ \t]+(\.*[\w.]*)[ \t]+import[ \t]*(?:\(([^)]*)\)|([\w, \t*]*))", re.MULTILINE
)
_JS_IMPORT_RE = re.compile(
    r"""(?:import[^'"\n]*?from[ \t]*|import[ \t]*\(?[ \t]*|require\([ \t]*)['"](\.{1,2}/[^'"]+)['"]"""
)

_PY_SUFFIXES = (".py", ".pyi")
_JS_SUFFIXES = (".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs")


def _module_paths(module: str) -> list[str]:
    base = module.replace(".", "/")
    return [f"{base}.py", f"{base}/__init__.py"]


def _resolve_python(path: str, text: str, index: Dict[str, str], candidates: Set[str]) -> Set[str]:
    found: Set[str] = set()
    here = posixpath.dirname(path)

    def add_module(module_path: str) -> None:
        for rel in _module_paths(module_path):
            # Exact relative hit first, then suffix match for src/ layouts
            if rel in candidates:
                found.add(rel)
            elif rel in index:
                found.add(index[rel])

    for m in _PY_IMPORT_RE.finditer(text):
        for module in m.group(1).split(","):
            add_module(module.strip())

    for m in _PY_FROM_RE.finditer(text):
        module, names = m.group(1), m.group(2) or m.group(3) or ""
        if module.startswith("."):
            dots = len(module) - len(module.lstrip("."))
            anchor = here
            for _ in range(dots - 1):
                anchor = posixpath.dirname(anchor)
            rest = module[dots:].replace(".", "/")
            base = posixpath.join(anchor, rest) if rest else anchor
            targets = [base] if rest else []
            targets += [
                posixpath.join(base, n.split()[0])
                for n in names.split(",")
                if n.strip() and n.strip() != "*"
            ]
            for target in targets:
                target = posixpath.normpath(target)
                for suffix in ("", "/__init__"):
                    rel = f"{target}{suffix}.py"
                    if rel in candidates:
                        found.add(rel)
        else:
            add_module(module)
            for name in names.split(","):
                name = name.strip()
                if name and name != "*":
                    name = name.split()[0]
                    add_module(f"{module}.{name}")
    return found


def _resolve_js(path: str, text: str, candidates: Set[str]) -> Set[str]:
    found: Set[str] = set()
    here = posixpath.dirname(path)
    for m in _JS_IMPORT_RE.finditer(text):
        target = posixpath.normpath(posixpath.join(here, m.group(1)))
        options = [target] + [target + s for s in _JS_SUFFIXES]
        options += [f"{target}/index{s}" for s in _JS_SUFFIXES]
        for option in options:
            if option in candidates:
                found.add(option)
                break
    return found


def _suffix_index(candidates: Iterable[str]) -> Dict[str, str]:
    """Map every path suffix (by component) to the candidate that ends with it.

    Lets ``pkg/mod.py`` resolve to ``src/pkg/mod.py``. Ambiguous suffixes
    are dropped.
    """
    index: Dict[str, str] = {}
    ambiguous: Set[str] = set()
    for path in candidates:
        parts = PurePosixPath(path).parts
        for i in range(1, len(parts)):
            suffix = "/".join(parts[i:])
            if suffix in index and index[suffix] != path:
                ambiguous.add(suffix)
            index[suffix] = path
    for suffix in ambiguous:
        index.pop(suffix, None)
    return index


def find_references(sources: Mapping[str, str]) -> Dict[str, Set[str]]:
    """Return, for each path in *sources*, the other source paths it references."""
    candidates = set(sources)
    index = _suffix_index(candidates)
    refs: Dict[str, Set[str]] = {}
    for path, text in sources.items():
        if path.endswith(_PY_SUFFIXES):
            found = _resolve_python(path, text, index, candidates)
        elif path.endswith(_JS_SUFFIXES):
            found = _resolve_js(path, text, candidates)
        else:
            found = set()
        found.discard(path)
        refs[path] = found
    return refs
