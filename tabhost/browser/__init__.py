"""Browser state: shared handle, sessions, tabs, refs and macros."""
from .connection import BrowserHandle
from .macros import URL_MACROS, expand_macro
from .page import Page
from .reaper import SessionReaper
from .refs import ElementRef, annotate_snapshot, build_refs, parse_refs, resolve_ref
from .tabs import Session, SessionRegistry, TabLookup, TabState

__all__ = [
    "BrowserHandle",
    "URL_MACROS",
    "expand_macro",
    "Page",
    "SessionReaper",
    "ElementRef",
    "annotate_snapshot",
    "build_refs",
    "parse_refs",
    "resolve_ref",
    "Session",
    "SessionRegistry",
    "TabLookup",
    "TabState",
]
