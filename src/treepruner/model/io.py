"""
Input/Output Manager (JSON)
Handles exporting and importing the TreeState to .json files.

File format:
    {
      "seed": 12345,
      "pruned": [3, 4, 5]
    }
"""
import json
import logging
from importlib.metadata import version, PackageNotFoundError
from typing import Any

from treepruner.model.codec import TreeStateError
from treepruner.model.state import TreeState

# Get module logger
logger = logging.getLogger(__name__)

try:
    APP_VERSION = version("treepruner")
except PackageNotFoundError:
    APP_VERSION = "0.0.0-dev"


class IOManager:

    @staticmethod
    def default_filename(state: TreeState) -> str:
        return f"tree-state-{state.seed}.json"

    @staticmethod
    def save_state(state: TreeState, filepath: str) -> None:
        logger.info(f"Saving tree state to: {filepath}")
        payload = {"seed": state.seed, "pruned": sorted(state.pruned_ids)}
        try:
            with open(filepath, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2)
        except OSError as e:
            logger.exception(f"Failed to save tree state: {e}")
            raise e
        logger.info(f"Tree state saved (app version {APP_VERSION}, {len(state.pruned_ids)} pruned ids).")

    @staticmethod
    def load_state(filepath: str) -> TreeState:
        """
        Read a tree state file.

        Raises:
            TreeStateError: If the file is not valid JSON or has the wrong shape.
            OSError: If the file cannot be read.
        """
        logger.info(f"Loading tree state from: {filepath}")
        with open(filepath, "rb") as f:
            raw = f.read()

        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.error(f"File '{filepath}' is not valid JSON: {e}")
            raise TreeStateError(f"File '{filepath}' is not valid JSON.") from e

        state = IOManager.state_from_dict(data)
        logger.info(f"Tree state loaded: seed {state.seed}, {len(state.pruned_ids)} pruned ids.")
        return state

    @staticmethod
    def state_from_dict(data: Any) -> TreeState:
        """Validate the decoded JSON object and convert it to a TreeState."""
        if not isinstance(data, dict):
            raise TreeStateError("Tree state must be a JSON object.")

        seed = data.get("seed")
        pruned = data.get("pruned")

        # bool is a subclass of int, reject it explicitly
        if not isinstance(seed, int) or isinstance(seed, bool):
            raise TreeStateError("'seed' must be an integer.")
        if not isinstance(pruned, list):
            raise TreeStateError("'pruned' must be a list of integers.")
        for node_id in pruned:
            if not isinstance(node_id, int) or isinstance(node_id, bool) or node_id < 0:
                raise TreeStateError(f"Invalid pruned id: {node_id!r}.")

        return TreeState(seed=seed, pruned_ids=frozenset(pruned))
