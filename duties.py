"""Project tasks."""

from __future__ import annotations

from typing import Literal

from duty import duty  # pyright: ignore[reportMissingImports]


PACKAGE_NAME = "docsync"


@duty(capture=False)
def test(ctx, *args: str):
    """Run tests."""
    args_str = " " + " ".join(args) if args else ""
    ctx.run(f"uv run pytest{args_str}")


@duty(capture=False)
def clean(ctx):
    """Clean all files from the Git directory except checked-in files."""
    ctx.run("git clean -dfX")


@duty(capture=False)
def update(ctx):
    """Update all environment packages."""
    ctx.run("uv lock --upgrade")
    ctx.run("uv sync --all-extras")


def _get_lint_targets(filepath: str | None) -> tuple[str, str]:
    """Get lint targets based on optional filepath.

    Returns:
        Tuple of (ruff_target, mypy_target)
    """
    if filepath is None:
        return ".", "src/"
    # mypy only checks package sources
    return filepath, filepath if filepath.startswith("src/") else ""


@duty(capture=False)
def lint(ctx, filepath: str | None = None):  # noqa: D417
    """Lint the code and fix issues if possible.

    Args:
        filepath: Optional path to a specific file to lint.
                  If not provided, lints the entire project.
    """
    ruff_target, mypy_target = _get_lint_targets(filepath)
    ctx.run(f"uv run ruff check --fix --unsafe-fixes {ruff_target}")
    ctx.run(f"uv run ruff format {ruff_target}")
    if mypy_target:
        ctx.run(f"uv run mypy {mypy_target}")


@duty(capture=False)
def lint_check(ctx, filepath: str | None = None):  # noqa: D417
    """Lint the code (check only, no fixes).

    Args:
        filepath: Optional path to a specific file to lint.
                  If not provided, lints the entire project.
    """
    ruff_target, mypy_target = _get_lint_targets(filepath)
    ctx.run(f"uv run ruff check {ruff_target}")
    ctx.run(f"uv run ruff format --check {ruff_target}")
    if mypy_target:
        ctx.run(f"uv run mypy {mypy_target}")


@duty(capture=False)
def sync(ctx, *args: str):
    """Run one content synchronization against the local working copy."""
    args_str = " " + " ".join(args) if args else ""
    ctx.run(f"uv run {PACKAGE_NAME} run{args_str}")


@duty(capture=False)
def version(
    ctx,
    *bump_type: Literal["major", "minor", "patch", "stable", "alpha", "beta", "rc"],
):
    """Release a new version with git operations. (major|minor|patch|stable|alpha|beta|rc)."""
    result = ctx.run("git status --porcelain", capture=True)
    if result.strip():
        msg = "Cannot release with uncommitted changes. Please commit or stash first."
        raise RuntimeError(msg)

    old_version = ctx.run("uv version --short", capture=True).strip()
    print(f"Current version: {old_version}")
    bump_str = " ".join(f"--bump {i}" for i in bump_type)
    ctx.run(f"uv version {bump_str}")
    new_version = ctx.run("uv version --short", capture=True).strip()
    print(f"New version: {new_version}")
    ctx.run("uv lock")

    ctx.run("git add pyproject.toml uv.lock")
    ctx.run(f'git commit -m "chore: bump version {old_version} -> {new_version}"')
    tag = f"v{new_version}"
    ctx.run(f"git tag {tag}")
    print(f"Created tag: {tag}")
