"""Dependency graph view over a task collection and the edit guard.

An edge A -> B means "A depends on B". The graph is rebuilt from the
collection for every query and never stored.
"""

import heapq
from collections import deque
from dataclasses import dataclass, field, replace

from tripcheck.tasks import rejections
from tripcheck.tasks.models import Task, TaskCollection
from tripcheck.tasks.rejections import Rejection


class DependencyGraph:
    """Read-only adjacency view built from a TaskCollection."""

    def __init__(self, collection: TaskCollection) -> None:
        self._task_by_id: dict[str, Task] = {task.id: task for task in collection}
        self._order: dict[str, int] = {
            task.id: i for i, task in enumerate(collection)
        }

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._task_by_id

    def get(self, task_id: str) -> Task | None:
        return self._task_by_id.get(task_id)

    def dependents(self, task_id: str) -> list[str]:
        """Return ids of tasks that directly depend on task_id."""
        return [
            t.id for t in self._task_by_id.values() if task_id in t.dependencies
        ]

    def prerequisites(self, task_id: str) -> list[str]:
        """Return every task id reachable from task_id, nearest first.

        Ids that are not in the collection are included but not expanded.
        """
        seen: set[str] = {task_id}
        result: list[str] = []
        queue: deque[str] = deque([task_id])
        while queue:
            current = queue.popleft()
            task = self._task_by_id.get(current)
            if task is None:
                continue
            for dep in task.dependencies:
                if dep not in seen:
                    seen.add(dep)
                    result.append(dep)
                    queue.append(dep)
        return result

    def path(self, source: str, target: str) -> list[str] | None:
        """Return the forward path from source to target, or None."""
        if source == target:
            return [source]
        parent: dict[str, str] = {}
        queue: deque[str] = deque([source])
        seen: set[str] = {source}
        while queue:
            current = queue.popleft()
            task = self._task_by_id.get(current)
            if task is None:
                continue
            for dep in task.dependencies:
                if dep in seen:
                    continue
                parent[dep] = current
                if dep == target:
                    path = [dep]
                    while path[-1] != source:
                        path.append(parent[path[-1]])
                    path.reverse()
                    return path
                seen.add(dep)
                queue.append(dep)
        return None

    def find_cycle(self) -> list[str] | None:
        """Detect cycles using DFS. Returns cycle path or None."""
        WHITE, GRAY, BLACK = 0, 1, 2
        color: dict[str, int] = {task_id: WHITE for task_id in self._task_by_id}
        parent: dict[str, str | None] = {task_id: None for task_id in self._task_by_id}

        def dfs(node: str) -> list[str] | None:
            color[node] = GRAY
            for dep in self._task_by_id[node].dependencies:
                if dep not in color:
                    continue
                if color[dep] == GRAY:
                    # Walk parents back to dep to recover the loop
                    cycle = [dep, node]
                    current = node
                    while parent[current] is not None and parent[current] != dep:
                        current = parent[current]  # type: ignore[assignment]
                        cycle.append(current)
                    cycle.reverse()
                    return cycle
                if color[dep] == WHITE:
                    parent[dep] = node
                    result = dfs(dep)
                    if result:
                        return result
            color[node] = BLACK
            return None

        for task_id in self._task_by_id:
            if color[task_id] == WHITE:
                result = dfs(task_id)
                if result:
                    return result
        return None

    def execution_order(self) -> list[Task]:
        """Return tasks with prerequisites first.

        Ties keep collection order. Unknown dependency ids are ignored.
        """
        cycle = self.find_cycle()
        if cycle:
            raise ValueError(f"Dependency cycle detected: {' -> '.join(cycle)}")

        in_degree: dict[str, int] = {task_id: 0 for task_id in self._task_by_id}
        dependents: dict[str, list[str]] = {task_id: [] for task_id in self._task_by_id}
        for task in self._task_by_id.values():
            for dep in task.dependencies:
                if dep in self._task_by_id:
                    in_degree[task.id] += 1
                    dependents[dep].append(task.id)

        # Kahn's algorithm keyed on collection position
        heap = [(self._order[tid], tid) for tid, deg in in_degree.items() if deg == 0]
        heapq.heapify(heap)
        result: list[Task] = []
        while heap:
            _, current = heapq.heappop(heap)
            result.append(self._task_by_id[current])
            for neighbor in dependents[current]:
                in_degree[neighbor] -= 1
                if in_degree[neighbor] == 0:
                    heapq.heappush(heap, (self._order[neighbor], neighbor))
        return result


@dataclass(frozen=True)
class EdgeApproval:
    """The edge may be added. already_present means there is nothing to do."""

    task_id: str
    depends_on_id: str
    already_present: bool = False


@dataclass(frozen=True)
class DeleteApproval:
    """The task may be deleted; collection is the result with edges cascaded."""

    task_id: str
    collection: TaskCollection
    dependents: list[str] = field(default_factory=list)


def check_add_dependency(
    collection: TaskCollection, task_id: str, depends_on_id: str
) -> EdgeApproval | Rejection:
    """Decide whether task_id may gain depends_on_id as a prerequisite."""
    if task_id == depends_on_id:
        return rejections.self_dependency(task_id)

    graph = DependencyGraph(collection)
    task = graph.get(task_id)
    if task is None:
        return rejections.task_not_found(task_id)
    if depends_on_id not in graph:
        return rejections.task_not_found(depends_on_id)

    if depends_on_id in task.dependencies:
        return EdgeApproval(task_id, depends_on_id, already_present=True)

    # The new edge closes a loop if task_id is already reachable from depends_on_id
    back_path = graph.path(depends_on_id, task_id)
    if back_path is not None:
        return rejections.would_create_cycle(
            task_id, depends_on_id, [task_id, *back_path]
        )

    return EdgeApproval(task_id, depends_on_id)


def check_delete(
    collection: TaskCollection, task_id: str, confirmed: bool = False
) -> DeleteApproval | Rejection:
    """Decide whether task_id may be deleted.

    Deleting a task that others depend on needs confirmed=True. The
    approval carries the collection with the task removed and its id
    stripped from every former dependent.
    """
    graph = DependencyGraph(collection)
    if task_id not in graph:
        return rejections.task_not_found(task_id)

    dependents = graph.dependents(task_id)
    if dependents and not confirmed:
        return rejections.requires_confirmation(task_id, dependents)

    remaining = tuple(
        replace(t, dependencies=tuple(d for d in t.dependencies if d != task_id))
        if t.id in dependents
        else t
        for t in collection
        if t.id != task_id
    )
    return DeleteApproval(
        task_id=task_id,
        collection=TaskCollection(tasks=remaining),
        dependents=dependents,
    )


def candidate_dependencies(collection: TaskCollection, task_id: str) -> list[Task]:
    """Return tasks that could be added as new prerequisites of task_id."""
    candidates: list[Task] = []
    for task in collection:
        verdict = check_add_dependency(collection, task_id, task.id)
        if isinstance(verdict, EdgeApproval) and not verdict.already_present:
            candidates.append(task)
    return candidates
