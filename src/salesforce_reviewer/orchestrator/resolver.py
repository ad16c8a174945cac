"""Dependency resolution for review context.

Starting from the files a pull request changes, the resolver reads each file,
extracts the names it depends on, locates those names in the repository and
follows them recursively until the context budget is spent.
"""

import asyncio
import logging
import posixpath
import re
from typing import Protocol

from salesforce_reviewer.models.context import ContextFile, ContextSet
from salesforce_reviewer.models.files import (
    ChangedFile,
    FileCategory,
    classify,
    is_salesforce_file,
    order_by_priority,
)

logger = logging.getLogger(__name__)

_APEX_PATTERNS = (
    re.compile(r"\b(?:extends|implements)\s+([A-Za-z_][A-Za-z0-9_]*)"),
    re.compile(r"\bnew\s+([A-Za-z_][A-Za-z0-9_]*)\s*\("),
    re.compile(r"\b([A-Za-z_][A-Za-z0-9_]*)\.[A-Za-z_][A-Za-z0-9_]*\s*\("),
)
_LWC_IMPORT = re.compile(r"import\s+.*?\s+from\s+['\"]([^'\"]+)['\"]")
_AURA_TAG = re.compile(r"<([a-zA-Z]+:[a-zA-Z_][a-zA-Z0-9_]*)")

# Module prefixes provided by the platform; they never map to repository files
_PLATFORM_MODULES = ("lwc", "lightning/", "@salesforce/")

# Search hits kept per unresolved name
MAX_SEARCH_MATCHES = 2

APEX_EXTENSIONS = (".cls", ".trigger")
LWC_EXTENSIONS = (".js", ".html", ".css")
OBJECT_EXTENSIONS = (".object-meta.xml", ".field-meta.xml")


class ContentSource(Protocol):
    """Read access to a repository at a fixed ref."""

    async def read(self, path: str) -> str: ...

    async def exists(self, path: str) -> bool: ...

    async def search(self, query: str) -> list[str]: ...


def extract_dependencies(content: str, category: FileCategory) -> list[str]:
    """Extract the raw names a file refers to.

    Args:
        content: File content
        category: Classification of the file

    Returns:
        Names in first-seen order without duplicates. Apex yields identifiers,
        LWC yields import targets, Aura yields namespaced tags. Other kinds
        yield nothing.
    """
    if not isinstance(content, str):
        return []

    found: list[str] = []
    if category.is_apex:
        for pattern in _APEX_PATTERNS:
            found.extend(pattern.findall(content))
    elif category.framework == "lwc":
        found.extend(_LWC_IMPORT.findall(content))
    elif category.framework == "aura":
        found.extend(_AURA_TAG.findall(content))

    return list(dict.fromkeys(found))


def dependency_name(raw: str) -> str | None:
    """Reduce a raw dependency to the name files are stored under.

    ``c/childComp`` and ``c:childComp`` become ``childComp``. Platform modules,
    relative imports and tags from other namespaces return None.
    """
    if raw.startswith(_PLATFORM_MODULES) or raw.startswith("."):
        return None
    if raw.startswith("c/"):
        return raw[2:] or None
    if ":" in raw:
        namespace, _, name = raw.partition(":")
        return name if namespace == "c" else None
    return raw


def candidate_paths(name: str, current_dir: str) -> list[str]:
    """List the conventional locations of a dependency, in probe order."""

    def join(*parts: str) -> str:
        return posixpath.join(*[p for p in parts if p])

    paths: list[str] = []
    for ext in APEX_EXTENSIONS:
        paths.append(join(current_dir, f"{name}{ext}"))
        paths.append(f"force-app/main/default/classes/{name}{ext}")
        paths.append(f"src/classes/{name}{ext}")
        paths.append(f"classes/{name}{ext}")

    for ext in LWC_EXTENSIONS:
        paths.append(join(current_dir, name, f"{name}{ext}"))
        paths.append(f"force-app/main/default/lwc/{name}/{name}{ext}")
        paths.append(f"src/lwc/{name}/{name}{ext}")

    paths.append(f"force-app/main/default/aura/{name}/{name}.cmp")
    paths.append(f"src/aura/{name}/{name}.cmp")

    for ext in OBJECT_EXTENSIONS:
        paths.append(f"force-app/main/default/objects/{name}/{name}{ext}")
        paths.append(f"src/objects/{name}{ext}")

    return list(dict.fromkeys(paths))


class DependencyResolver:
    """Builds a bounded context set from changed files and their dependencies.

    State lives for a single resolve() call. The visited set is the only
    cycle guard: a path is never fetched twice within a run.
    """

    def __init__(self, source: ContentSource, max_context_files: int = 10) -> None:
        """Initialize the resolver.

        Args:
            source: Where file content, existence and search results come from
            max_context_files: Hard ceiling on the size of the context set
        """
        if max_context_files < 0:
            raise ValueError("max_context_files must not be negative")
        self.source = source
        self.max_context_files = max_context_files
        self._visited: set[str] = set()
        self._context: ContextSet = {}
        self._lock = asyncio.Lock()

    @property
    def budget_spent(self) -> bool:
        return len(self._context) >= self.max_context_files

    async def resolve(self, changed_files: list[ChangedFile]) -> ContextSet:
        """Resolve context for a set of changed files.

        Args:
            changed_files: Files changed by the pull request

        Returns:
            Mapping of path to context file, at most max_context_files entries
        """
        self._visited = set()
        self._context = {}
        self._lock = asyncio.Lock()

        paths = order_by_priority([f.path for f in changed_files])
        logger.info(f"Starting context resolution for {len(paths)} Salesforce files")

        for path in paths:
            if self.budget_spent:
                logger.info(f"Reached maximum context files limit: {self.max_context_files}")
                break
            await self._process(path)

        logger.info(f"Resolved {len(self._context)} context files")
        return dict(self._context)

    async def _process(self, path: str) -> None:
        if path in self._visited or self.budget_spent:
            return
        self._visited.add(path)

        try:
            content = await self.source.read(path)
        except Exception as e:
            logger.warning(f"Failed to fetch content for {path}: {e}")
            return

        if not content:
            logger.warning(f"Empty content for file: {path}")
            return

        category = classify(path)
        if category is None:
            return

        if not await self._insert(ContextFile(path=path, content=content, category=category)):
            return

        await self._follow_dependencies(path, content, category)

    async def _insert(self, file: ContextFile) -> bool:
        async with self._lock:
            if self.budget_spent:
                return False
            self._context[file.path] = file
            return True

    async def _follow_dependencies(self, path: str, content: str, category: FileCategory) -> None:
        if self.budget_spent:
            return

        names = [n for n in map(dependency_name, extract_dependencies(content, category)) if n]
        names = list(dict.fromkeys(names))
        if not names:
            return

        logger.debug(f"Found {len(names)} dependencies in {path}: {names}")

        for dependency_path in await self._locate(names, posixpath.dirname(path)):
            if self.budget_spent:
                break
            await self._process(dependency_path)

    async def _locate(self, names: list[str], current_dir: str) -> list[str]:
        """Find repository paths for dependency names."""
        located: list[str] = []
        for name in names:
            if self.budget_spent:
                break
            existing = await self._existing(candidate_paths(name, current_dir))
            if not existing:
                existing = await self._search(name)
            located.extend(existing)
        return list(dict.fromkeys(located))

    async def _existing(self, paths: list[str]) -> list[str]:
        results = await asyncio.gather(*(self._exists(p) for p in paths))
        return [path for path, exists in zip(paths, results) if exists]

    async def _exists(self, path: str) -> bool:
        try:
            return await self.source.exists(path)
        except Exception as e:
            logger.warning(f"Existence check failed for {path}: {e}")
            return False

    async def _search(self, name: str) -> list[str]:
        try:
            results = await self.source.search(f"class {name} OR interface {name}")
        except Exception as e:
            logger.warning(f"Code search failed for {name}: {e}")
            return []
        return [path for path in results if is_salesforce_file(path)][:MAX_SEARCH_MATCHES]
