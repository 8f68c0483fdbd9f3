"""Git operations for source installs.

Usage:
    from getsymi.git import Repository

    repo = Repository(config.git_dir, executor)
    if repo.exists():
        repo.pull_ff()
"""

from getsymi.git.repository import GitCommands, Repository, normalize_remote, same_remote

__all__ = [
    "GitCommands",
    "Repository",
    "normalize_remote",
    "same_remote",
]
