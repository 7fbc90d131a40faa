"""Conversation state, response cache and tenant preferences."""

from ledgerbot.state.cache import CacheEntry, QueryCache
from ledgerbot.state.context import ContextStore, ConversationContext, Selection
from ledgerbot.state.preferences import ClientPreferences, expand_shortcuts, is_shortcuts_help

__all__ = [
    "CacheEntry",
    "ClientPreferences",
    "ContextStore",
    "ConversationContext",
    "QueryCache",
    "Selection",
    "expand_shortcuts",
    "is_shortcuts_help",
]
