"""Rebuild the folder hierarchy of a workspace from flat stored paths."""

from collections.abc import Iterable

from docspace.db.models.document import DocumentRow
from docspace.models.document import FileNode
from docspace.models.enums import NodeType
from docspace.services.paths import split_path

# Workspaces/{slug}/{workspace} precede the workspace-relative segments.
_BASE_SEGMENTS = 3


def build_file_tree(documents: Iterable[DocumentRow]) -> list[FileNode]:
    """Return root nodes in first-seen order; use ``sort_tree`` for display.

    Nodes are memoized by cumulative path, so documents sharing a folder
    prefix share the same folder node.
    """
    nodes: dict[str, FileNode] = {}
    roots: list[FileNode] = []

    for doc in documents:
        parts = split_path(doc.filepath)
        relevant = parts[_BASE_SEGMENTS:]

        if not relevant:
            roots.append(_file_node(doc, name=parts[-1] if parts else doc.filepath, path=doc.filepath))
            continue

        current = "/".join(parts[:_BASE_SEGMENTS])
        parent: FileNode | None = None
        for index, part in enumerate(relevant):
            current = f"{current}/{part}"
            node = nodes.get(current)
            if node is None:
                if index == len(relevant) - 1:
                    node = _file_node(doc, name=part, path=current)
                else:
                    node = FileNode(
                        name=part,
                        type=NodeType.FOLDER,
                        path=current,
                        created_at=doc.created_at,
                    )
                nodes[current] = node
                if parent is None:
                    roots.append(node)
                else:
                    parent.children.append(node)
            parent = node

    return roots


def _file_node(doc: DocumentRow, name: str, path: str) -> FileNode:
    return FileNode(
        name=name,
        type=NodeType.FILE,
        path=path,
        document_id=doc.document_id,
        file_type=doc.file_type,
        created_at=doc.created_at,
    )


def _sort_key(node: FileNode) -> tuple[int, str, str]:
    return (0 if node.type == NodeType.FOLDER else 1, node.name.casefold(), node.name)


def sort_tree(nodes: list[FileNode]) -> list[FileNode]:
    """Folders before files, then case-insensitive by name, recursively."""
    return [
        node.model_copy(update={"children": sort_tree(node.children)})
        for node in sorted(nodes, key=_sort_key)
    ]


def count_items(folder: FileNode) -> int:
    """Number of nodes below a folder, at any depth."""
    count = len(folder.children)
    for child in folder.children:
        if child.type == NodeType.FOLDER:
            count += count_items(child)
    return count


def find_node(path: str, nodes: list[FileNode]) -> FileNode | None:
    for node in nodes:
        if node.path == path:
            return node
        found = find_node(path, node.children)
        if found:
            return found
    return None
