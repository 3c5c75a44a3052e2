"""Todo tree utilities.

Tasks are held in a :class:`TaskArena`: a flat ``id -> TaskNode`` map where each
node records its ``parent_id`` and the ordered ids of its children. Views that
need a nested shape (filtering, sorting, JSON output) work on :class:`Task`
snapshots produced by :meth:`TaskArena.to_tree`.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterable, Iterator, Optional, Sequence

from .calendar import parse_iso_day


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def weight(self) -> int:
        return _PRIORITY_WEIGHT[self]


_PRIORITY_WEIGHT = {Priority.HIGH: 0, Priority.MEDIUM: 1, Priority.LOW: 2}


class StatusFilter(str, Enum):
    ALL = "all"
    OPEN = "open"
    DONE = "done"


class SortKey(str, Enum):
    TITLE = "title"
    PRIORITY = "priority"
    DUE_ASC = "due_asc"
    DUE_DESC = "due_desc"


class TaskTreeError(ValueError):
    """Raised when an arena operation would break the tree structure."""


@dataclass(frozen=True)
class Task:
    """Immutable nested snapshot of a task and its subtasks."""

    id: str
    title: str
    priority: Priority = Priority.MEDIUM
    completed: bool = False
    notes: str = ""
    due_date: Optional[str] = None
    children: tuple["Task", ...] = ()


@dataclass
class TaskNode:
    """Arena entry: task fields plus explicit parent/children links."""

    id: str
    title: str
    priority: Priority = Priority.MEDIUM
    completed: bool = False
    notes: str = ""
    due_date: Optional[str] = None
    parent_id: Optional[str] = None
    child_ids: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class TaskFilter:
    priority: Optional[Priority] = None
    status: StatusFilter = StatusFilter.ALL


@dataclass(frozen=True)
class DescendantCount:
    total: int
    completed: int


class TaskArena:
    """Flat, index-based task tree. Every node is reachable from exactly one root."""

    def __init__(self) -> None:
        self._nodes: dict[str, TaskNode] = {}
        self._root_ids: list[str] = []

    @classmethod
    def from_rows(cls, rows: Iterable[TaskNode]) -> "TaskArena":
        """Build an arena from flat rows whose ``parent_id`` links form a forest.

        Rows keep their input order within each sibling group. Rows pointing at an
        unknown parent, or rows that form a cycle, raise :class:`TaskTreeError`.
        """

        arena = cls()
        pending = [replace(row, child_ids=[]) for row in rows]
        for row in pending:
            if row.id in arena._nodes:
                raise TaskTreeError(f"Duplicate task id {row.id!r}")
            arena._nodes[row.id] = row
        for row in pending:
            if row.parent_id is None:
                arena._root_ids.append(row.id)
                continue
            parent = arena._nodes.get(row.parent_id)
            if parent is None:
                raise TaskTreeError(f"Task {row.id!r} references unknown parent {row.parent_id!r}")
            parent.child_ids.append(row.id)

        reachable = sum(1 for _ in arena._walk(arena._root_ids))
        if reachable != len(arena._nodes):
            raise TaskTreeError("Task parent links contain a cycle")
        return arena

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def get(self, task_id: str) -> TaskNode:
        try:
            return self._nodes[task_id]
        except KeyError as exc:
            raise TaskTreeError(f"Unknown task id {task_id!r}") from exc

    def roots(self) -> list[TaskNode]:
        return [self._nodes[task_id] for task_id in self._root_ids]

    def children(self, task_id: Optional[str]) -> list[TaskNode]:
        ids = self._root_ids if task_id is None else self.get(task_id).child_ids
        return [self._nodes[child_id] for child_id in ids]

    def _walk(self, start_ids: Sequence[str]) -> Iterator[TaskNode]:
        stack = list(reversed(start_ids))
        while stack:
            node = self._nodes[stack.pop()]
            yield node
            stack.extend(reversed(node.child_ids))

    def subtree_ids(self, task_id: str) -> list[str]:
        """Return ``task_id`` and all of its descendants, parents before children."""

        self.get(task_id)
        return [node.id for node in self._walk([task_id])]

    def _sibling_ids(self, parent_id: Optional[str]) -> list[str]:
        return self._root_ids if parent_id is None else self.get(parent_id).child_ids

    def add(self, node: TaskNode, *, index: Optional[int] = None) -> TaskNode:
        """Attach a new leaf node under ``node.parent_id`` (or at root level)."""

        if node.id in self._nodes:
            raise TaskTreeError(f"Duplicate task id {node.id!r}")
        siblings = self._sibling_ids(node.parent_id)
        node = replace(node, child_ids=[])
        self._nodes[node.id] = node
        if index is None:
            siblings.append(node.id)
        else:
            siblings.insert(index, node.id)
        return node

    def remove_subtree(self, task_id: str) -> list[str]:
        """Detach and drop a task with all descendants; returns the removed ids."""

        removed = self.subtree_ids(task_id)
        node = self._nodes[task_id]
        self._sibling_ids(node.parent_id).remove(task_id)
        for removed_id in removed:
            del self._nodes[removed_id]
        return removed

    def move(self, task_id: str, new_parent_id: Optional[str], *, index: Optional[int] = None) -> None:
        """Re-parent a task. Moving a task beneath its own subtree is rejected."""

        node = self.get(task_id)
        if new_parent_id is not None and new_parent_id in self.subtree_ids(task_id):
            raise TaskTreeError("A task cannot be moved beneath itself")
        self._sibling_ids(node.parent_id).remove(task_id)
        node.parent_id = new_parent_id
        siblings = self._sibling_ids(new_parent_id)
        if index is None:
            siblings.append(task_id)
        else:
            siblings.insert(index, task_id)

    def reorder(self, parent_id: Optional[str], from_index: int, to_index: int) -> None:
        """Move one task within its sibling group."""

        siblings = self._sibling_ids(parent_id)
        if not (0 <= from_index < len(siblings)) or not (0 <= to_index < len(siblings)):
            raise TaskTreeError("Sibling index out of range")
        moved = siblings.pop(from_index)
        siblings.insert(to_index, moved)

    def to_task(self, task_id: str) -> Task:
        node = self.get(task_id)
        return Task(
            id=node.id,
            title=node.title,
            priority=node.priority,
            completed=node.completed,
            notes=node.notes,
            due_date=node.due_date,
            children=tuple(self.to_task(child_id) for child_id in node.child_ids),
        )

    def to_tree(self) -> list[Task]:
        return [self.to_task(root_id) for root_id in self._root_ids]


def reorder_siblings(
    arena: TaskArena, parent_id: Optional[str], from_index: int, to_index: int
) -> list[str]:
    """Move a task within its sibling group and return the group's new id order."""

    arena.reorder(parent_id, from_index, to_index)
    return [node.id for node in arena.children(parent_id)]


def _iter_descendants(task: Task) -> Iterator[Task]:
    stack = list(task.children)
    while stack:
        current = stack.pop()
        yield current
        stack.extend(current.children)


def count_descendants(task: Task) -> DescendantCount:
    """Count every node below ``task`` and how many of them are completed."""

    total = 0
    completed = 0
    for descendant in _iter_descendants(task):
        total += 1
        if descendant.completed:
            completed += 1
    return DescendantCount(total=total, completed=completed)


def compute_progress(task: Task) -> int:
    """Percentage progress derived from descendants only.

    A parent's own ``completed`` flag is not folded into the average.
    """

    counts = count_descendants(task)
    if counts.total == 0:
        return 100 if task.completed else 0
    return (200 * counts.completed + counts.total) // (2 * counts.total)


def _matches(task: Task, query: str, task_filter: TaskFilter) -> bool:
    text = f"{task.title} {task.notes or ''}".lower()
    if query and query not in text:
        return False
    if task_filter.priority is not None and task.priority != task_filter.priority:
        return False
    if task_filter.status is StatusFilter.DONE:
        return task.completed
    if task_filter.status is StatusFilter.OPEN:
        return not task.completed
    return True


def filter_tree(
    tasks: Sequence[Task],
    query: str = "",
    task_filter: Optional[TaskFilter] = None,
) -> list[Task]:
    """Keep tasks that match, or that have a matching descendant.

    Children of a kept task are replaced by their own filtered result, so a match
    deep in the tree surfaces with its ancestors but without unrelated siblings.
    """

    needle = (query or "").strip().lower()
    task_filter = task_filter or TaskFilter()

    def recur(level: Sequence[Task]) -> list[Task]:
        kept: list[Task] = []
        for task in level:
            children = recur(task.children) if task.children else []
            if children or _matches(task, needle, task_filter):
                kept.append(replace(task, children=tuple(children)))
        return kept

    return recur(tasks)


def _sort_key(sort_key: SortKey):
    if sort_key is SortKey.TITLE:
        return lambda task: (task.title.casefold(), task.title)
    if sort_key is SortKey.PRIORITY:
        return lambda task: Priority(task.priority).weight

    # Unparseable due dates are treated as missing
    def due_key(task: Task):
        due = parse_iso_day(task.due_date) if task.due_date else None
        return (due is None, due.toordinal() if due else 0)

    return due_key


def sort_tasks(tasks: Sequence[Task], sort_key: SortKey | str = SortKey.DUE_ASC) -> list[Task]:
    """Sort every sibling group independently. Missing due dates always sort last."""

    sort_key = SortKey(sort_key)
    key = _sort_key(sort_key)

    def recur(level: Sequence[Task]) -> list[Task]:
        resorted = [replace(task, children=tuple(recur(task.children))) for task in level]
        if sort_key is SortKey.DUE_DESC:
            dated = [task for task in resorted if key(task)[0] is False]
            undated = [task for task in resorted if key(task)[0] is True]
            dated.sort(key=key, reverse=True)
            return dated + undated
        return sorted(resorted, key=key)

    return recur(tasks)


__all__ = [
    "DescendantCount",
    "Priority",
    "SortKey",
    "StatusFilter",
    "Task",
    "TaskArena",
    "TaskFilter",
    "TaskNode",
    "TaskTreeError",
    "compute_progress",
    "count_descendants",
    "filter_tree",
    "reorder_siblings",
    "sort_tasks",
]
