"""Runtime settings."""

import os
from dataclasses import dataclass, field
from typing import Mapping

DEFAULT_CONTROL_DIR = ".kvlet"
DEFAULT_BRANCH = "master"
ALWAYS_IGNORED = frozenset({".gitignore", ".DS_Store", "Makefile"})


@dataclass(frozen=True)
class Settings:
    """Settings shared by the repository, working tree and CLI.

    Attributes:
        control_dir: Directory inside the working tree holding the
            object store and repository state.
        default_branch: Branch created by ``init``.
        extra_ignored: Working-tree names never treated as user files,
            on top of the control directory and ``ALWAYS_IGNORED``.
        log_level: Level the CLI configures logging with.
    """

    control_dir: str = DEFAULT_CONTROL_DIR
    default_branch: str = DEFAULT_BRANCH
    extra_ignored: frozenset[str] = field(default_factory=frozenset)
    log_level: str = "WARNING"

    @property
    def ignored(self) -> frozenset[str]:
        return ALWAYS_IGNORED | self.extra_ignored | {self.control_dir}

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from ``KVLET_*`` environment variables."""
        env = os.environ if environ is None else environ
        extra = env.get("KVLET_IGNORE", "")
        return cls(
            control_dir=env.get("KVLET_DIR", DEFAULT_CONTROL_DIR),
            default_branch=env.get("KVLET_DEFAULT_BRANCH", DEFAULT_BRANCH),
            extra_ignored=frozenset(n.strip() for n in extra.split(",") if n.strip()),
            log_level=env.get("KVLET_LOG_LEVEL", "WARNING").upper(),
        )
