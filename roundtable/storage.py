"""JSON file storage.

All state is stored in flat JSON files under a configurable base directory.
There is no database or ORM; reads and writes go through plain helper
methods that load and dump JSON.

Directory layout:

    {base}/
      config.json               ← Settings overrides
      characters.json           ← custom (generative) character definitions
      discussions/
        {id}.json               ← Discussion metadata + roster
        {id}/
          turns.json            ← append-only Turn log
          session.json          ← phase + turn counter
"""

from __future__ import annotations

import json
import shutil
from pathlib import Path
from typing import Any

from roundtable.config import Settings, load_settings
from roundtable.models import Discussion, Participant, Phase, SessionState, Turn


class Storage:
    def __init__(self, base_path: Path) -> None:
        self._base = base_path
        self._disc_root = base_path / "discussions"
        self._disc_root.mkdir(parents=True, exist_ok=True)

    @property
    def base_path(self) -> Path:
        return self._base

    # ------------------------------------------------------------------
    # Internal path helpers
    # ------------------------------------------------------------------

    def _disc_file(self, discussion_id: str) -> Path:
        return self._disc_root / f"{discussion_id}.json"

    def _disc_dir(self, discussion_id: str) -> Path:
        return self._disc_root / discussion_id

    def _read_json(self, path: Path) -> Any:
        return json.loads(path.read_text())

    def _write_json(self, path: Path, data: Any) -> None:
        path.write_text(json.dumps(data, indent=2))

    # ------------------------------------------------------------------
    # Discussions
    # ------------------------------------------------------------------

    def create_discussion(self, discussion: Discussion) -> Discussion:
        self._disc_file(discussion.id).write_text(discussion.model_dump_json(indent=2))
        self._disc_dir(discussion.id).mkdir(exist_ok=True)
        return discussion

    def get_discussion(self, discussion_id: str) -> Discussion | None:
        path = self._disc_file(discussion_id)
        if not path.is_file():
            return None
        return Discussion.model_validate_json(path.read_text())

    def list_discussions(self) -> list[Discussion]:
        """All discussions, newest first."""
        found = [
            Discussion.model_validate_json(p.read_text())
            for p in self._disc_root.glob("*.json")
        ]
        return sorted(found, key=lambda d: d.created_at, reverse=True)

    def delete_discussion(self, discussion_id: str) -> bool:
        path = self._disc_file(discussion_id)
        if not path.is_file():
            return False
        path.unlink()
        child_dir = self._disc_dir(discussion_id)
        if child_dir.is_dir():
            shutil.rmtree(child_dir)
        return True

    def load_roster(self, discussion_id: str) -> list[Participant]:
        discussion = self.get_discussion(discussion_id)
        if discussion is None:
            raise KeyError(discussion_id)
        return discussion.roster

    # ------------------------------------------------------------------
    # Turn log (append-only)
    # ------------------------------------------------------------------

    def _turns_path(self, discussion_id: str) -> Path:
        return self._disc_dir(discussion_id) / "turns.json"

    def load_log(self, discussion_id: str) -> list[Turn]:
        path = self._turns_path(discussion_id)
        if not path.exists():
            return []
        return [Turn.model_validate(t) for t in self._read_json(path)]

    def append_turn(self, discussion_id: str, turn: Turn) -> None:
        existing = self.load_log(discussion_id)
        existing.append(turn)
        self._disc_dir(discussion_id).mkdir(exist_ok=True)
        self._write_json(
            self._turns_path(discussion_id),
            [t.model_dump(mode="json") for t in existing],
        )

    def clear_log(self, discussion_id: str) -> None:
        path = self._turns_path(discussion_id)
        if path.exists():
            path.unlink()

    # ------------------------------------------------------------------
    # Session (phase + counter only)
    # ------------------------------------------------------------------

    def _session_path(self, discussion_id: str) -> Path:
        return self._disc_dir(discussion_id) / "session.json"

    def load_session(self, discussion_id: str) -> SessionState | None:
        path = self._session_path(discussion_id)
        if not path.exists():
            return None
        data = self._read_json(path)
        return SessionState(phase=Phase(data["phase"]), turn_counter=data.get("turn_counter", 0))

    def save_session(self, discussion_id: str, state: SessionState) -> None:
        self._disc_dir(discussion_id).mkdir(exist_ok=True)
        self._write_json(
            self._session_path(discussion_id),
            {"phase": state.phase.value, "turn_counter": state.turn_counter},
        )

    # ------------------------------------------------------------------
    # Custom characters
    # ------------------------------------------------------------------

    def _characters_path(self) -> Path:
        return self._base / "characters.json"

    def get_custom_characters(self) -> list[Participant]:
        path = self._characters_path()
        if not path.exists():
            return []
        return [Participant.model_validate(c) for c in self._read_json(path)]

    def save_custom_character(self, character: Participant) -> None:
        """Upsert a character by id."""
        chars = self.get_custom_characters()
        for i, c in enumerate(chars):
            if c.id == character.id:
                chars[i] = character
                break
        else:
            chars.append(character)
        self._write_json(self._characters_path(), [c.model_dump() for c in chars])

    def delete_custom_character(self, character_id: str) -> bool:
        chars = self.get_custom_characters()
        kept = [c for c in chars if c.id != character_id]
        if len(kept) == len(chars):
            return False
        self._write_json(self._characters_path(), [c.model_dump() for c in kept])
        return True

    # ------------------------------------------------------------------
    # Config
    # ------------------------------------------------------------------

    def _config_path(self) -> Path:
        return self._base / "config.json"

    def get_config(self) -> Settings:
        """Read config, returning defaults merged with stored values."""
        path = self._config_path()
        stored = self._read_json(path) if path.is_file() else None
        return load_settings(stored)

    def update_config(self, fields: dict[str, Any]) -> Settings:
        """Merge fields into config and persist. Returns full config."""
        merged = self.get_config().model_dump()
        merged.update(fields)
        settings = load_settings(merged)
        self._write_json(self._config_path(), settings.model_dump())
        return settings
