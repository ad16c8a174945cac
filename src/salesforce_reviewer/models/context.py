"""Context set models built by the dependency resolver."""

from dataclasses import dataclass

from salesforce_reviewer.models.files import FileCategory


@dataclass(frozen=True)
class ContextFile:
    """A file supplied alongside a changed file for structural background."""

    path: str
    content: str
    category: FileCategory


# Insertion-ordered mapping of path -> ContextFile
ContextSet = dict[str, ContextFile]
