"""Client for the Aurion (webAurion) school portal.

Aurion has no API: the client replays the portal's JSF/PrimeFaces AJAX
requests, discovers the lazily-loaded sidebar menu and scrapes schedules
and class groups.
"""

from aurion.events import classify, parse_title
from aurion.menu import Menu
from aurion.models import ClassGroup, Event, EventKind, MenuNode
from aurion.session import AurionSession, SessionState

__all__ = [
    "AurionSession",
    "SessionState",
    "Menu",
    "MenuNode",
    "Event",
    "EventKind",
    "ClassGroup",
    "classify",
    "parse_title",
]
