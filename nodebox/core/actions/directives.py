"""
Folder automation directives.

A folder's on_create / on_update lists hold directives naming an action and
its parameters, either as the compact string form::

    "copy_to_folder to=archive"

or as a mapping::

    {"action": "copy_to_folder", "params": {"to": "archive"}}
"""
from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass(frozen=True)
class AutomationDirective:
    action_uuid: str
    params: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def parse(cls, entry: Any) -> 'AutomationDirective':
        """
        Parse one directive entry.

        Raises:
            ValueError: If the entry is malformed
        """
        if isinstance(entry, str):
            return cls._parse_compact(entry)
        if isinstance(entry, dict):
            return cls._parse_mapping(entry)
        raise ValueError(f"Unsupported directive: {entry!r}")

    @classmethod
    def _parse_compact(cls, entry: str) -> 'AutomationDirective':
        tokens = entry.split()
        if not tokens:
            raise ValueError("Empty directive")

        params: Dict[str, str] = {}
        for token in tokens[1:]:
            key, sep, value = token.partition('=')
            if not sep or not key:
                raise ValueError(f"Malformed parameter {token!r} in {entry!r}")
            params[key] = value

        return cls(action_uuid=tokens[0], params=params)

    @classmethod
    def _parse_mapping(cls, entry: Dict[str, Any]) -> 'AutomationDirective':
        action_uuid = entry.get('action') or entry.get('uuid')
        if not isinstance(action_uuid, str) or not action_uuid.strip():
            raise ValueError(f"Directive has no action: {entry!r}")

        params = entry.get('params') or {}
        if not isinstance(params, dict):
            raise ValueError(f"Directive params must be a mapping: {entry!r}")

        return cls(
            action_uuid=action_uuid.strip(),
            params={str(k): str(v) for k, v in params.items()},
        )
