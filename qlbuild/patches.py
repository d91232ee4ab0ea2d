"""
Source patches applied to the QuantLib tree before configuring.

Upstream refuses MSVC shared-library builds and relies on
CMAKE_WINDOWS_EXPORT_ALL_SYMBOLS, which does not export static data
members. The patches below lift the CMake guard, add a QL_EXPORT macro
to the generated configuration header and annotate the classes and
members that need it.

Patching is best effort: a patch that no longer matches is reported as
a warning and the run goes on. Upstream drift is expected to show up
as a compile or link error, or as a missing artifact during
verification.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence, Tuple, Union

from .domain import StageOutcome, StageResult, ok, warning
from .errors import PatchError

LOG = logging.getLogger(__name__)

MAX_DIAGNOSTIC_LINES = 20


@dataclass(frozen=True)
class LiteralPatch:
    """
    Replace every occurrence of search with replace; absent is a no-op.
    """

    path: str
    search: str
    replace: str
    description: str = ""

    def apply_to(self, text: str) -> Tuple[str, StageOutcome]:
        if self.search not in text:
            LOG.debug("%s: literal text not present, nothing to do", self.path)
            return text, ok(f"{self.path}: nothing to replace")
        return text.replace(self.search, self.replace), ok(f"{self.path}: {self.description}")


@dataclass(frozen=True)
class RegexPatch:
    """
    Multiline regular-expression substitution.

    hint is a token used to dump the relevant lines when the pattern
    does not match. When every token of skip_if is found in the file the
    patch counts as already applied.
    """

    path: str
    pattern: str
    replace: str
    description: str = ""
    hint: str = ""
    skip_if: Tuple[str, ...] = ()

    def apply_to(self, text: str) -> Tuple[str, StageOutcome]:
        if self.skip_if and all(token in text for token in self.skip_if):
            return text, ok(f"{self.path}: already patched")

        new_text, count = re.subn(self.pattern, self.replace, text, flags=re.MULTILINE)
        if count == 0:
            detail = f"{self.path}: pattern not found ({self.description or self.pattern})"
            LOG.warning("%s", detail)
            _dump_context(self.path, text, self.hint)
            return text, warning(detail)
        LOG.debug("%s: %d replacement(s)", self.path, count)
        return new_text, ok(f"{self.path}: {self.description}")


@dataclass(frozen=True)
class InsertBeforeLastPatch:
    """
    Insert block right before the last occurrence of marker.

    Nothing happens when signature is already part of the file, so the
    patch can be applied any number of times.
    """

    path: str
    marker: str
    block: str
    signature: str
    description: str = ""

    def apply_to(self, text: str) -> Tuple[str, StageOutcome]:
        if self.signature in text:
            return text, ok(f"{self.path}: already patched")

        index = text.rfind(self.marker)
        if index < 0:
            detail = f"{self.path}: marker {self.marker!r} not found"
            LOG.warning("%s", detail)
            return text, warning(detail)
        return text[:index] + self.block + text[index:], ok(f"{self.path}: {self.description}")


Patch = Union[LiteralPatch, RegexPatch, InsertBeforeLastPatch]


def _dump_context(path: str, text: str, hint: str) -> None:
    if not hint:
        return
    lines = [
        f"{lineno:5d}: {line}"
        for lineno, line in enumerate(text.splitlines(), start=1)
        if hint in line
    ]
    if not lines:
        LOG.warning("%s: no line mentions %r", path, hint)
        return
    LOG.warning(
        "%s: lines mentioning %r:\n%s",
        path,
        hint,
        "\n".join(lines[:MAX_DIAGNOSTIC_LINES]),
    )


EXPORT_MACRO_SIGNATURE = "QL_EXPORT_DEFINED"

EXPORT_MACRO_BLOCK = """\
/* Symbol visibility for MSVC shared-library (DLL) builds. */
#ifndef QL_EXPORT_DEFINED
#define QL_EXPORT_DEFINED
#if defined(_MSC_VER) && !defined(QL_STATIC_LINK)
#  if defined(QL_COMPILATION)
#    define QL_EXPORT __declspec(dllexport)
#  else
#    define QL_EXPORT __declspec(dllimport)
#  endif
#else
#  define QL_EXPORT
#endif
#endif

"""

GUARD_REMOVED_NOTE = "# MSVC shared-library guard removed for DLL builds\n"

# Order matters: the annotations rely on QL_EXPORT from the config template.
QUANTLIB_PATCHES: List[Patch] = [
    RegexPatch(
        path="CMakeLists.txt",
        pattern=(
            r"^[ \t]*if\s*\(\s*MSVC\s+AND\s+BUILD_SHARED_LIBS\s*\)[ \t]*\r?\n"
            r"\s*message\s*\(\s*FATAL_ERROR[^\n]*\)[ \t]*\r?\n"
            r"[ \t]*endif\s*\([^)\n]*\)[ \t]*\r?\n?"
        ),
        replace=GUARD_REMOVED_NOTE,
        description="remove MSVC shared-library guard",
        hint="BUILD_SHARED_LIBS",
        skip_if=(GUARD_REMOVED_NOTE.strip(),),
    ),
    InsertBeforeLastPatch(
        path="ql/config.hpp.cfg",
        marker="#endif",
        block=EXPORT_MACRO_BLOCK,
        signature=EXPORT_MACRO_SIGNATURE,
        description="define QL_EXPORT",
    ),
    RegexPatch(
        path="ql/math/distributions/normaldistribution.hpp",
        pattern=r"^([ \t]*)class[ \t]+(InverseCumulativeNormal|MoroInverseCumulativeNormal)\b(?![ \t]*;)",
        replace=r"\1class QL_EXPORT \2",
        description="export inverse cumulative normal classes",
        hint="InverseCumulativeNormal",
        skip_if=(
            "class QL_EXPORT InverseCumulativeNormal",
            "class QL_EXPORT MoroInverseCumulativeNormal",
        ),
    ),
    LiteralPatch(
        path="ql/math/randomnumbers/knuthuniformrng.hpp",
        search="static const int KK, LL, TT, QUALITY;",
        replace="static QL_EXPORT const int KK, LL, TT, QUALITY;",
        description="export KnuthUniformRng static members",
    ),
]


def _read(path: Path) -> str:
    try:
        with open(path, encoding="utf-8", errors="surrogateescape", newline="") as handle:
            return handle.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise PatchError(f"cannot read {path}: {exc}") from exc


def _write(path: Path, text: str) -> None:
    try:
        with open(path, "w", encoding="utf-8", errors="surrogateescape", newline="") as handle:
            handle.write(text)
    except OSError as exc:
        raise PatchError(f"cannot write {path}: {exc}") from exc


def apply_patches(
    source_root: Path,
    patches: Sequence[Patch] = tuple(QUANTLIB_PATCHES),
) -> StageResult:
    """
    Apply patches in order to the tree rooted at source_root.

    Missing files and unmatched patterns become warnings; only I/O
    failures raise.
    """

    result = StageResult(stage="patch")
    for patch in patches:
        target = source_root / patch.path
        if not target.is_file():
            detail = f"{patch.path}: file not found"
            LOG.warning("%s", detail)
            result.add(warning(detail))
            continue

        original = _read(target)
        patched, outcome = patch.apply_to(original)
        if patched != original:
            LOG.info("Patched %s", patch.path)
            _write(target, patched)
        result.add(outcome)
    return result
