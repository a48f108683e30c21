"""
Plan file persistence — atomic read/write for BuildPlan.

The composed plan is stored as JSON (default .state/plan.json) for the
external build executor to pick up.  Writes are atomic (write to temp
file, then rename) so an executor never reads a half-written plan.
"""

from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path

from pydantic import ValidationError

from depcompose.core.models.plan import BuildPlan

logger = logging.getLogger(__name__)

# Default plan file path (relative to workspace root)
DEFAULT_STATE_DIR = ".state"
DEFAULT_PLAN_FILE = "plan.json"


def default_plan_path(workspace_root: Path) -> Path:
    """Get the default plan file path for a workspace."""
    return workspace_root / DEFAULT_STATE_DIR / DEFAULT_PLAN_FILE


def load_plan(path: Path) -> BuildPlan | None:
    """Load a build plan from a JSON file.

    Args:
        path: Path to the plan JSON file.

    Returns:
        BuildPlan, or None if the file is missing or unreadable.
    """
    if not path.is_file():
        logger.info("No plan file at %s", path)
        return None

    try:
        raw = path.read_text(encoding="utf-8")
        data = json.loads(raw)
        plan = BuildPlan.model_validate(data)
        logger.debug("Loaded plan from %s (%d batches)", path, plan.batch_count)
        return plan
    except json.JSONDecodeError as e:
        logger.warning("Corrupt plan file %s: %s", path, e)
        return None
    except (OSError, ValidationError) as e:
        logger.warning("Cannot load plan from %s: %s", path, e)
        return None


def save_plan(plan: BuildPlan, path: Path) -> None:
    """Save a build plan to a JSON file (atomic write).

    Args:
        plan: The plan to save.
        path: Target path for the plan file.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    data = plan.model_dump(mode="json")
    content = json.dumps(data, indent=2, ensure_ascii=False) + "\n"

    # Atomic write: temp file in same directory, then rename
    try:
        fd, tmp_path = tempfile.mkstemp(
            dir=path.parent,
            prefix=".plan_",
            suffix=".tmp",
        )
        tmp = Path(tmp_path)
        try:
            with open(fd, "w", encoding="utf-8") as f:
                f.write(content)
            tmp.replace(path)
            logger.debug("Plan saved to %s", path)
        except Exception:
            tmp.unlink(missing_ok=True)
            raise
    except OSError as e:
        logger.error("Failed to save plan to %s: %s", path, e)
        raise
