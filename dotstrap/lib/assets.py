from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import List

logger = logging.getLogger(__name__)

DEV_TREE = [
    "projects/example/repos",
    "projects/example/ops",
    "projects/example/infra",
    "projects/example/env",
    "projects/example/scripts",
    "projects/example/docs",
    "projects/example/agent",
    "projects/example/logs",
    "repos",
    "sandbox",
    "stacks/containers",
    "stacks/cloud",
    "stacks/k8s",
    "logs/containers",
    "logs/cloud",
    "logs/sandbox",
    "logs/misc",
    "templates/project",
    "templates/repo",
    "templates/stack",
    "notes/snippets",
    "notes/prompts",
    "data",
]

# Seed files, relative to both the template source and the dev root.
DEV_SEEDS = [
    "projects/example/README.md",
    "projects/example/ops/Makefile",
    "projects/example/ops/docker-compose.yml",
    "projects/example/env/.envrc",
    "projects/example/env/.env.example",
    "templates/project/README.md",
    "templates/repo/README.md",
    "templates/stack/README.md",
    "README.md",
]


def copy_if_missing(src: Path, dst: Path, *, dry_run: bool = False) -> bool:
    """Copy src to dst unless dst exists or src does not. True when copied."""

    if dst.exists() or dst.is_symlink() or not src.exists():
        return False
    if dry_run:
        logger.info("Would seed %s", dst)
        return True
    dst.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(src, dst)
    logger.info("Seeded %s", dst)
    return True


def bootstrap_dev_dir(dev_root: Path, template_src: Path, *, dry_run: bool = False) -> List[Path]:
    """Create the ~/dev layout and seed templates without overwriting anything.

    Returns the files that were seeded.
    """

    if dry_run:
        logger.info("Would ensure dev tree under %s", dev_root)
    else:
        for rel in DEV_TREE:
            (dev_root / rel).mkdir(parents=True, exist_ok=True)

    seeded = []
    for rel in DEV_SEEDS:
        if copy_if_missing(template_src / rel, dev_root / rel, dry_run=dry_run):
            seeded.append(dev_root / rel)
    return seeded
