"""Changed-file and Salesforce file classification models."""

from dataclasses import dataclass
from enum import Enum


class ChangeStatus(Enum):
    """Status of a file in a pull request."""

    ADDED = "added"
    MODIFIED = "modified"
    REMOVED = "removed"

    @classmethod
    def from_github(cls, status: str) -> "ChangeStatus":
        """Map a GitHub file status onto the three statuses the engine knows.

        GitHub also reports "renamed", "copied", "changed" and "unchanged";
        all of those still have reviewable content at the head ref.
        """
        if status == "added":
            return cls.ADDED
        if status == "removed":
            return cls.REMOVED
        return cls.MODIFIED


class FileKind(Enum):
    """Structural kind of a Salesforce source file."""

    APEX_CLASS = "apex-class"
    APEX_TRIGGER = "apex-trigger"
    COMPONENT = "component"
    METADATA_OBJECT = "metadata-object"
    FLOW = "flow"
    PERMISSION = "permission"
    OTHER = "other"


class Priority(Enum):
    """Priority tier used to order context resolution."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {Priority.HIGH: 0, Priority.MEDIUM: 1, Priority.LOW: 2}


@dataclass(frozen=True)
class FileCategory:
    """Classification of a path, derived purely from its suffix."""

    suffix: str
    kind: FileKind
    priority: Priority
    parser: str
    framework: str | None = None  # "lwc" or "aura" for components

    @property
    def is_apex(self) -> bool:
        return self.kind in (FileKind.APEX_CLASS, FileKind.APEX_TRIGGER)

    @property
    def label(self) -> str:
        """Human readable name, e.g. "apex-class" or "lwc"."""
        return self.framework or self.kind.value


FILE_CATEGORIES: tuple[FileCategory, ...] = (
    # High priority - core Apex
    FileCategory(".cls", FileKind.APEX_CLASS, Priority.HIGH, "apex"),
    FileCategory(".cls-meta.xml", FileKind.APEX_CLASS, Priority.HIGH, "xml"),
    FileCategory(".trigger", FileKind.APEX_TRIGGER, Priority.HIGH, "apex"),
    FileCategory(".trigger-meta.xml", FileKind.APEX_TRIGGER, Priority.HIGH, "xml"),
    # Medium priority - components and object metadata
    FileCategory(".js", FileKind.COMPONENT, Priority.MEDIUM, "javascript", "lwc"),
    FileCategory(".js-meta.xml", FileKind.COMPONENT, Priority.MEDIUM, "xml", "lwc"),
    FileCategory(".html", FileKind.COMPONENT, Priority.MEDIUM, "html", "lwc"),
    FileCategory(".css", FileKind.COMPONENT, Priority.MEDIUM, "css", "lwc"),
    FileCategory(".cmp", FileKind.COMPONENT, Priority.MEDIUM, "html", "aura"),
    FileCategory(".cmp-meta.xml", FileKind.COMPONENT, Priority.MEDIUM, "xml", "aura"),
    FileCategory(".app", FileKind.COMPONENT, Priority.MEDIUM, "html", "aura"),
    FileCategory(".app-meta.xml", FileKind.COMPONENT, Priority.MEDIUM, "xml", "aura"),
    FileCategory(".object-meta.xml", FileKind.METADATA_OBJECT, Priority.MEDIUM, "xml"),
    FileCategory(".field-meta.xml", FileKind.METADATA_OBJECT, Priority.MEDIUM, "xml"),
    # Low priority - configuration and flows
    FileCategory(".flow-meta.xml", FileKind.FLOW, Priority.LOW, "xml"),
    FileCategory(".permissionset-meta.xml", FileKind.PERMISSION, Priority.LOW, "xml"),
    FileCategory(".profile-meta.xml", FileKind.PERMISSION, Priority.LOW, "xml"),
    FileCategory(".layout-meta.xml", FileKind.OTHER, Priority.LOW, "xml"),
    FileCategory(".component", FileKind.OTHER, Priority.LOW, "html"),
    FileCategory(".page", FileKind.OTHER, Priority.LOW, "html"),
)

# Longest suffix first so the most specific suffix always wins.
_BY_SUFFIX_LENGTH = sorted(FILE_CATEGORIES, key=lambda c: len(c.suffix), reverse=True)


def classify(path: str) -> FileCategory | None:
    """Classify a path by suffix.

    Args:
        path: Repository-relative file path

    Returns:
        The matching category, or None if the path is not a recognized
        Salesforce file
    """
    for category in _BY_SUFFIX_LENGTH:
        if path.endswith(category.suffix):
            return category
    return None


def is_salesforce_file(path: str) -> bool:
    """Check whether a path has a recognized Salesforce suffix."""
    return classify(path) is not None


def order_by_priority(paths: list[str]) -> list[str]:
    """Order recognized paths high, medium, low; unrecognized paths are dropped.

    The sort is stable, so the original order is kept within a tier.
    """
    classified = [(path, classify(path)) for path in paths]
    recognized = [(path, category) for path, category in classified if category is not None]
    recognized.sort(key=lambda item: item[1].priority.rank)
    return [path for path, _ in recognized]


@dataclass(frozen=True)
class ChangedFile:
    """A file changed by a pull request."""

    path: str
    status: ChangeStatus
    additions: int = 0
    deletions: int = 0
    patch: str | None = None
    raw_url: str | None = None

    @property
    def changes(self) -> int:
        """Total number of changed lines."""
        return self.additions + self.deletions

    @property
    def category(self) -> FileCategory | None:
        return classify(self.path)
