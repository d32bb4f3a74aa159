"""Actions, built-in actions and automation directives."""
from .action import Action, ActionContext, ScriptAction, load_script, SCRIPT_MIMETYPE
from .builtin import BUILTIN_ACTIONS, find_builtin_action
from .directives import AutomationDirective

__all__ = [
    'Action',
    'ActionContext',
    'ScriptAction',
    'load_script',
    'SCRIPT_MIMETYPE',
    'BUILTIN_ACTIONS',
    'find_builtin_action',
    'AutomationDirective',
]
