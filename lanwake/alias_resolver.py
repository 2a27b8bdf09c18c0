"""Alias file loading and target name resolution."""

import json
import logging
from pathlib import Path
from typing import Dict, Optional, Union

from .errors import AliasFileUnreadableError


logger = logging.getLogger(__name__)

ALIAS_FILENAME = "wol_aliases.json"
DEFAULT_ALIAS_PATH = Path(__file__).resolve().parent / ALIAS_FILENAME


def parse_alias_table(text: str) -> Dict[str, str]:
    """Decode alias file contents into a name -> MAC string mapping.

    The document must be a JSON object whose keys and values are all
    strings; anything else raises AliasFileUnreadableError.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise AliasFileUnreadableError(f"invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise AliasFileUnreadableError(
            f"expected a JSON object, got {type(data).__name__}"
        )

    for name, value in data.items():
        if not isinstance(value, str):
            raise AliasFileUnreadableError(
                f"alias {name!r} maps to {type(value).__name__}, expected a string"
            )

    return dict(data)


class AliasResolver:
    """Loads the alias table and resolves target tokens against it."""

    def __init__(self, alias_path: Union[str, Path, None] = None, repair_on_error: bool = True):
        self.alias_path = Path(alias_path) if alias_path else DEFAULT_ALIAS_PATH
        self.repair_on_error = repair_on_error

    def load(self) -> Dict[str, str]:
        """Load the alias table.

        A missing file gives an empty table. An unreadable file is
        reported as a warning and also gives an empty table; when
        ``repair_on_error`` is set the broken file is moved to ``.bak``
        and an empty placeholder is written in its place.
        """
        if not self.alias_path.exists():
            logger.debug(f"Alias file {self.alias_path} not found, no aliases loaded")
            return {}

        try:
            try:
                text = self.alias_path.read_text(encoding='utf-8')
            except (OSError, UnicodeDecodeError) as e:
                raise AliasFileUnreadableError(f"could not read file: {e}") from e
            aliases = parse_alias_table(text)
        except AliasFileUnreadableError as e:
            logger.warning(f"Could not load alias file {self.alias_path}: {e}. "
                           "Continuing without aliases.")
            if self.repair_on_error:
                self._write_placeholder()
            return {}

        logger.debug(f"Loaded {len(aliases)} aliases from {self.alias_path}")
        return aliases

    def _write_placeholder(self) -> Optional[Path]:
        """Move the unreadable alias file aside and write an empty table."""
        backup_path = self._next_backup_path()
        try:
            self.alias_path.replace(backup_path)
            with open(self.alias_path, 'w', encoding='utf-8') as f:
                json.dump({}, f, indent=2)
        except OSError as e:
            logger.warning(f"Could not write placeholder alias file {self.alias_path}: {e}")
            return None

        logger.warning(f"Moved unreadable alias file to {backup_path} and created "
                       f"an empty placeholder at {self.alias_path}")
        return backup_path

    def _next_backup_path(self) -> Path:
        """First unused of ``<name>.bak``, ``<name>.bak.1``, ``<name>.bak.2``, ..."""
        backup_path = self.alias_path.with_name(self.alias_path.name + ".bak")
        counter = 1
        while backup_path.exists():
            backup_path = self.alias_path.with_name(f"{self.alias_path.name}.bak.{counter}")
            counter += 1
        return backup_path

    @staticmethod
    def resolve(token: str, aliases: Dict[str, str]) -> str:
        """Return the MAC string for ``token`` if it is an alias, else ``token`` unchanged."""
        address = aliases.get(token)
        if address is None:
            return token

        logger.info(f"Resolved alias {token} to {address}")
        return address
