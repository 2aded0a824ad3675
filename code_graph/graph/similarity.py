"""
Composite similarity between two code entities.

Tag overlap is the strongest signal; co-location and naming corroborate it.
"""
import os
from pathlib import PurePosixPath
from typing import Iterable, List, Sequence

from ..types import CodeEntity

TAG_WEIGHT = 0.5
PATH_WEIGHT = 0.3
NAME_WEIGHT = 0.2


def tag_similarity(tags_a: Iterable[str], tags_b: Iterable[str]) -> float:
    """Jaccard index of two tag sets."""
    set_a, set_b = set(tags_a), set(tags_b)
    union = set_a | set_b
    if not union:
        return 0.0
    return len(set_a & set_b) / len(union)


def path_similarity(dir_a: Sequence[str], dir_b: Sequence[str]) -> float:
    """Shared directory segments over all directory segments.

    Two entities that both sit at the workspace root have no segments at
    all and count as fully co-located.
    """
    set_a, set_b = set(dir_a), set(dir_b)
    union = set_a | set_b
    if not union:
        return 1.0
    return len(set_a & set_b) / len(union)


def levenshtein_distance(a: str, b: str) -> int:
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, 1):
        current = [i]
        for j, char_b in enumerate(b, 1):
            cost = 0 if char_a == char_b else 1
            current.append(min(current[j - 1] + 1, previous[j] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def name_similarity(name_a: str, name_b: str) -> float:
    """1 - edit distance over the longer name's length."""
    longer = max(len(name_a), len(name_b))
    if longer == 0:
        return 1.0
    return (longer - levenshtein_distance(name_a, name_b)) / longer


def common_tags(tags_a: Sequence[str], tags_b: Sequence[str]) -> List[str]:
    """Tags of ``tags_b`` also present in ``tags_a``, in ``tags_b`` order."""
    set_a = set(tags_a)
    seen = set()
    shared = []
    for tag in tags_b:
        if tag in set_a and tag not in seen:
            seen.add(tag)
            shared.append(tag)
    return shared


class SimilarityEngine:
    """Scores entity pairs for RELATED_TO edges."""

    def __init__(self, workspace_path: str):
        self.workspace_path = os.path.abspath(workspace_path)
        self._dir_cache = {}

    def directory_segments(self, file_path: str) -> tuple:
        """Segments of the file's containing directory, relative to the workspace."""
        segments = self._dir_cache.get(file_path)
        if segments is None:
            relative = os.path.relpath(os.path.abspath(file_path), self.workspace_path)
            segments = PurePosixPath(relative.replace(os.sep, "/")).parent.parts
            self._dir_cache[file_path] = segments
        return segments

    def calculate(self, entity_a: CodeEntity, entity_b: CodeEntity) -> float:
        """Weighted combination of tag, path and name similarity."""
        tags = tag_similarity(entity_a.semantic_tags, entity_b.semantic_tags)
        path = path_similarity(
            self.directory_segments(entity_a.file_path),
            self.directory_segments(entity_b.file_path),
        )
        name = name_similarity(entity_a.name, entity_b.name)
        return TAG_WEIGHT * tags + PATH_WEIGHT * path + NAME_WEIGHT * name
