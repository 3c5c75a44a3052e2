"""Todo routes."""

from __future__ import annotations

from typing import Optional

from flask import jsonify, request

from ...errors import NotFound, ValidationFailed
from ...extensions import get_services
from ...infra.repositories.todo import todo_to_node
from ...logging_config import get_logger
from ...models.todo import Todo
from ...services.auth import SessionContext
from ...services.todos import (
    Priority,
    Task,
    TaskArena,
    TaskFilter,
    TaskTreeError,
    compute_progress,
    filter_tree,
    reorder_siblings,
    sort_tasks,
)
from ..api import json_body, login_required, parse_id, validate
from . import bp
from .forms import MoveForm, TodoForm, TodoQuery, TodoUpdateForm

logger = get_logger("blueprints.todos")


def serialize_todo(todo: Todo) -> dict:
    return {
        "id": str(todo.id),
        "title": todo.title,
        "notes": todo.notes or "",
        "dueDate": todo.due_date,
        "completed": todo.completed,
        "priority": todo.priority,
        "parentId": str(todo.parent_id) if todo.parent_id is not None else None,
        "userId": str(todo.user_id),
        "createdAt": todo.created_at.isoformat() if todo.created_at else None,
    }


def serialize_task(task: Task) -> dict:
    """Nested node with its descendant-derived progress."""

    return {
        "id": task.id,
        "title": task.title,
        "notes": task.notes,
        "dueDate": task.due_date,
        "completed": task.completed,
        "priority": Priority(task.priority).value,
        "progress": compute_progress(task),
        "children": [serialize_task(child) for child in task.children],
    }


def _owned_todo(todo_id: str, ctx: SessionContext) -> Todo:
    todo = get_services().todo_repo.get(parse_id(todo_id), user_id=ctx.user_id)
    if todo is None:
        raise NotFound("Todo not found")
    return todo


@bp.get("")
@login_required
def list_todos(ctx: SessionContext):
    """Flat rows plus the filtered, sorted tree used by the task view."""

    query = validate(TodoQuery, request.args.to_dict())
    rows = get_services().todo_repo.list_for_user(user_id=ctx.user_id)
    arena = TaskArena.from_rows(todo_to_node(row) for row in rows)
    tree = filter_tree(
        arena.to_tree(),
        query.q,
        TaskFilter(priority=query.priority, status=query.status),
    )
    tree = sort_tasks(tree, query.sort)
    return jsonify(
        {
            "success": True,
            "todos": [serialize_todo(row) for row in rows],
            "tree": [serialize_task(task) for task in tree],
        }
    )


@bp.post("")
@login_required
def create_todo(ctx: SessionContext):
    form = validate(TodoForm, json_body())
    todo = Todo(
        title=form.title,
        notes=form.notes,
        due_date=form.due_date,
        priority=form.priority.value,
        completed=form.completed,
        parent_id=form.parent_id,
        user_id=ctx.user_id,
    )
    try:
        todo = get_services().todo_repo.create(todo, user_id=ctx.user_id)
    except LookupError as exc:
        raise NotFound("Parent todo not found") from exc
    logger.info("Todo created", extra={"user_id": ctx.user_id, "todo_id": todo.id})
    return jsonify({"success": True, "todo": serialize_todo(todo)}), 201


@bp.put("/<todo_id>")
@login_required
def update_todo(todo_id: str, ctx: SessionContext):
    _owned_todo(todo_id, ctx)
    patch = validate(TodoUpdateForm, json_body()).changes()
    todo = get_services().todo_repo.update(parse_id(todo_id), patch, user_id=ctx.user_id)
    if todo is None:
        raise NotFound("Todo not found")
    logger.info(
        "Todo updated",
        extra={"user_id": ctx.user_id, "todo_id": todo.id, "fields": sorted(patch)},
    )
    return jsonify({"success": True, "todo": serialize_todo(todo)})


@bp.delete("/<todo_id>")
@login_required
def delete_todo(todo_id: str, ctx: SessionContext):
    """Delete a todo together with all of its subtasks."""

    removed = get_services().todo_repo.delete_subtree(parse_id(todo_id), user_id=ctx.user_id)
    if not removed:
        raise NotFound("Todo not found")
    logger.info("Todo deleted", extra={"user_id": ctx.user_id, "removed": len(removed)})
    return jsonify(
        {
            "success": True,
            "message": "Todo deleted successfully",
            "deleted": [str(removed_id) for removed_id in removed],
        }
    )


def _sibling_keys(arena: TaskArena, parent_id: Optional[str]) -> list[int]:
    return [int(node.id) for node in arena.children(parent_id)]


@bp.post("/<todo_id>/move")
@login_required
def move_todo(todo_id: str, ctx: SessionContext):
    """Reorder a todo among its siblings, or re-parent it when ``parentId`` is sent.

    ``index`` is clamped to the sibling group; without it the todo goes last.
    """

    form = validate(MoveForm, json_body())
    repo = get_services().todo_repo
    arena = repo.load_arena(user_id=ctx.user_id)
    key = str(parse_id(todo_id))
    if key not in arena:
        raise NotFound("Todo not found")

    old_parent = arena.get(key).parent_id
    new_parent = old_parent
    if "parent_id" in form.model_fields_set:
        new_parent = str(form.parent_id) if form.parent_id is not None else None
        if new_parent is not None and new_parent not in arena:
            raise NotFound("Parent todo not found")

    try:
        if new_parent == old_parent:
            siblings = _sibling_keys(arena, old_parent)
            last = len(siblings) - 1
            target = last if form.index is None else min(form.index, last)
            reorder_siblings(arena, old_parent, siblings.index(int(key)), target)
        else:
            size = len(arena.children(new_parent))
            arena.move(key, new_parent, index=None if form.index is None else min(form.index, size))
    except TaskTreeError as exc:
        raise ValidationFailed(str(exc)) from exc

    if new_parent != old_parent:
        repo.set_parent(
            int(key), int(new_parent) if new_parent is not None else None, user_id=ctx.user_id
        )
        repo.set_positions(_sibling_keys(arena, old_parent), user_id=ctx.user_id)
    repo.set_positions(_sibling_keys(arena, new_parent), user_id=ctx.user_id)

    todo = repo.get(int(key), user_id=ctx.user_id)
    logger.info(
        "Todo moved",
        extra={"user_id": ctx.user_id, "todo_id": key, "parent_id": new_parent},
    )
    return jsonify({"success": True, "todo": serialize_todo(todo)})
