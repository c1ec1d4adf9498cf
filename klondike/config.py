"""
Configuration for Klondike game sessions.

Sessions take a plain dict of options, merged over `DEFAULT_CONFIG` and
validated into an immutable `GameConfig`.
"""

from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Optional

from klondike.errors import InvalidConfigurationError
from klondike.state.models import DrawMode

DEFAULT_CONFIG: Dict[str, Any] = {
    "draw_mode": "three",
    # Draw one hand right after the deal
    "initial_draw": True,
    # Committed states kept for undo
    "history_limit": 200,
    # Audit every committed state and roll back on failure
    "audit_commits": True,
    # Push every committed state to the remote store
    "push_on_commit": True,
}


@dataclass(frozen=True)
class GameConfig:
    """
    Immutable session configuration.

    Attributes:
        draw_mode: Default draw mode for `configure_game`
        initial_draw: Whether a hand is drawn immediately after the deal
        history_limit: Maximum number of undo steps retained
        audit_commits: Whether each commit is audited before it is installed
        push_on_commit: Whether each commit is pushed to the remote store
    """

    draw_mode: DrawMode = DrawMode.THREE
    initial_draw: bool = True
    history_limit: int = 200
    audit_commits: bool = True
    push_on_commit: bool = True

    @classmethod
    def from_dict(cls, config: Optional[Dict[str, Any]] = None) -> "GameConfig":
        """
        Merge `config` over the defaults and validate it.

        Raises:
            InvalidConfigurationError: On an unknown key or a bad value
        """
        merged = dict(DEFAULT_CONFIG)
        if config:
            unknown = set(config) - set(DEFAULT_CONFIG)
            if unknown:
                raise InvalidConfigurationError(
                    f"Unknown configuration keys: {sorted(unknown)}"
                )
            merged.update(config)

        for key in ("initial_draw", "audit_commits", "push_on_commit"):
            if not isinstance(merged[key], bool):
                raise InvalidConfigurationError(f"{key} must be a boolean")
        limit = merged["history_limit"]
        if not isinstance(limit, int) or isinstance(limit, bool) or limit < 0:
            raise InvalidConfigurationError("history_limit must be a non-negative integer")

        merged["draw_mode"] = DrawMode.parse(merged["draw_mode"])
        return cls(**{f.name: merged[f.name] for f in fields(cls)})

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["draw_mode"] = self.draw_mode.value
        return data
