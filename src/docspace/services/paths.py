"""Storage path normalization.

Stored paths are relative to the storage root and always have the shape
``Workspaces/{org_slug}/{workspace_name}/{...folders}/{file_name}``.
"""

from pathlib import PurePosixPath

from docspace.errors.exceptions import ValidationError

WORKSPACES_ROOT = "Workspaces"
_ROOT_PREFIX = f"{WORKSPACES_ROOT}/"

# Segments that would escape or alias a directory on disk.
_FORBIDDEN_SEGMENTS = {".", ".."}


def split_path(path: str) -> list[str]:
    """Split a stored path on '/' dropping empty segments."""
    return [part for part in path.split("/") if part]


def validate_segment(segment: str, what: str = "Path segment") -> str:
    if not segment.strip() or segment in _FORBIDDEN_SEGMENTS or "\\" in segment or "/" in segment:
        raise ValidationError(f"{what} '{segment}' is not allowed")
    if any(ord(ch) < 32 for ch in segment):
        raise ValidationError(f"{what} contains control characters")
    return segment


def normalize_storage_path(org_slug: str, filepath: str) -> str:
    """Return the canonical storage path for a caller-supplied relative path.

    A path that already starts with ``Workspaces/`` gets the organization slug
    spliced in after that prefix instead of being prefixed twice, so
    ``Workspaces/Contracts/a.pdf`` and ``Contracts/a.pdf`` normalize alike.
    """
    if not filepath or filepath.startswith("/"):
        raise ValidationError("File path must be a non-empty relative path")
    segments = split_path(filepath)
    if filepath.startswith(_ROOT_PREFIX):
        segments = segments[1:]
    if not segments:
        raise ValidationError("File path does not name a file")
    segments = [validate_segment(s) for s in segments]
    return "/".join([WORKSPACES_ROOT, validate_segment(org_slug, "Organization slug"), *segments])


def build_storage_path(
    org_slug: str,
    workspace_name: str,
    file_name: str,
    folders: list[str] | tuple[str, ...] = (),
) -> str:
    """Forward mapping from logical location to storage path."""
    return normalize_storage_path(org_slug, "/".join([workspace_name, *folders, file_name]))


def workspace_folder(org_slug: str, workspace_name: str) -> str:
    return f"{WORKSPACES_ROOT}/{org_slug}/{workspace_name}"


def workspace_prefix(org_slug: str, workspace_name: str) -> str:
    return f"{workspace_folder(org_slug, workspace_name)}/"


def is_in_workspace(filepath: str, org_slug: str, workspace_name: str) -> bool:
    return filepath.startswith(workspace_prefix(org_slug, workspace_name))


def rewrite_workspace_prefix(filepath: str, org_slug: str, old_name: str, new_name: str) -> str:
    """Move a stored path from one workspace folder to another.

    Paths outside the old workspace prefix are returned unchanged.
    """
    old_prefix = workspace_prefix(org_slug, old_name)
    if not filepath.startswith(old_prefix):
        return filepath
    return workspace_prefix(org_slug, new_name) + filepath[len(old_prefix):]


def file_name(filepath: str) -> str:
    parts = split_path(filepath)
    return parts[-1] if parts else filepath


def file_extension(name: str) -> str:
    """Lower-cased extension without the dot ('' when there is none)."""
    return PurePosixPath(name).suffix.lower().lstrip(".")
