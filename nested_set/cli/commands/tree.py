"""Tree maintenance commands.

Example:bash
    # Create tables and the sentinel root
    nested-set tree init-root

    # Print the tree of another model
    nested-set tree --model myapp.models:Department show

    # Verify stored intervals, exit 1 on violations
    nested-set tree check

    # Recompute every interval from parent_id
    nested-set tree rebuild
"""

import importlib
import sys
from contextlib import asynccontextmanager
from typing import Any

import click

from nested_set.cli.utils import coro, error, header, info, success, tree_line, warning
from nested_set.core.database import NestedSetMixin, NestedSetRepository, RepositoryError
from nested_set.core.database.hierarchy import flatten_tree
from nested_set.infra.database import (
    close_database,
    create_engine_from_settings,
    create_session_factory,
    get_async_session,
    init_database,
)

DEFAULT_MODEL = "nested_set.core.models.category:Category"


def load_model(path: str) -> type[Any]:
    """Import ``module:Class`` and check it is a nested-set model.

    Raises:
        click.BadParameter: If the path is malformed or names something else
    """
    module_name, _, class_name = path.partition(":")
    if not module_name or not class_name:
        raise click.BadParameter(f"expected 'module:Class', got {path!r}", param_hint="--model")
    try:
        model = getattr(importlib.import_module(module_name), class_name)
    except (ImportError, AttributeError) as e:
        raise click.BadParameter(f"cannot load {path!r}: {e}", param_hint="--model") from e
    if not (isinstance(model, type) and issubclass(model, NestedSetMixin)):
        raise click.BadParameter(f"{path!r} is not a NestedSetMixin model", param_hint="--model")
    return model


@asynccontextmanager
async def open_session():
    """Session on a command-scoped engine, disposed afterwards."""
    engine = create_engine_from_settings()
    try:
        async with get_async_session(create_session_factory(engine)) as session:
            yield engine, session
    finally:
        await close_database(engine)


def _label(node: Any) -> str:
    config = node.nested_set_config()
    name = getattr(node, "name", None)
    node_id = config.id_of(node)
    return f"{name} [{node_id}]" if name is not None else str(node_id)


@click.group(name="tree")
@click.option(
    "--model",
    "model_path",
    default=DEFAULT_MODEL,
    show_default=True,
    envvar="NESTED_SET_MODEL",
    help="Nested-set model as module:Class",
)
@click.pass_context
def tree(ctx: click.Context, model_path: str) -> None:
    """Nested-set tree maintenance commands."""
    ctx.ensure_object(dict)
    ctx.obj["model"] = load_model(model_path)


# =============================================================================
# Setup
# =============================================================================


@tree.command(name="init-root")
@click.option("--name", default="root", show_default=True, help="Name given to the root row")
@click.pass_context
@coro
async def init_root(ctx: click.Context, name: str) -> None:
    """Create missing tables and the sentinel root row."""
    model = ctx.obj["model"]
    config = model.nested_set_config()
    values = {"name": name} if hasattr(model, "name") else {}

    try:
        async with open_session() as (engine, session):
            await init_database(engine)
            root = await model.create_root(session, **values)
            await session.commit()
    except Exception as e:
        error(f"Failed to initialise tree: {e}")
        sys.exit(1)

    success(f"Root ready: {_label(root)} {config.interval_of(root)}")


# =============================================================================
# Inspection
# =============================================================================


@tree.command()
@click.pass_context
@coro
async def show(ctx: click.Context) -> None:
    """Print the tree below the root."""
    model = ctx.obj["model"]

    try:
        async with open_session() as (_, session):
            nodes = await model.get_tree(session)
    except RepositoryError as e:
        error(str(e))
        sys.exit(1)

    header(f"{model.__name__} tree")
    if not nodes:
        info("Tree is empty")
        return
    for depth, node in flatten_tree(nodes):
        tree_line(depth, _label(node), node.interval)


@tree.command()
@click.pass_context
@coro
async def check(ctx: click.Context) -> None:
    """Verify stored intervals against the nested-set invariants."""
    model = ctx.obj["model"]

    async with open_session() as (_, session):
        violations = await NestedSetRepository(model).check(session)

    if violations:
        for violation in violations:
            warning(violation)
        error(f"{len(violations)} violation(s) found")
        sys.exit(1)
    success("Tree is consistent")


# =============================================================================
# Repair
# =============================================================================


@tree.command()
@click.pass_context
@coro
async def rebuild(ctx: click.Context) -> None:
    """Recompute every interval from parent_id."""
    model = ctx.obj["model"]

    try:
        async with open_session() as (_, session):
            changed = await NestedSetRepository(model).rebuild(session)
    except RepositoryError as e:
        error(f"Rebuild failed: {e}")
        sys.exit(1)

    success(f"Rebuilt tree, {changed} row(s) renumbered")
