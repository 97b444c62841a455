"""Application state management for the Pole Capture client."""
from dataclasses import dataclass, field
from typing import Optional, List, Set

from shared.enums import PoleStatus, SortOrder

DEFAULT_PAGE_SIZE = 20


def all_statuses():
    return set(PoleStatus)


@dataclass
class PoleListState:
    """State behind the paginated pole list.

    ``selected_statuses`` starts with every status selected. Clearing it sends
    no filter at all, which lists every record (same as selecting all).
    """
    poles: List[object] = field(default_factory=list)
    page_size: int = DEFAULT_PAGE_SIZE
    offset: int = 0
    has_more: bool = True
    loading: bool = False
    refreshing: bool = False
    sort_by: SortOrder = SortOrder.RECENT
    selected_statuses: Set[PoleStatus] = field(default_factory=all_statuses)
    user_location: Optional[object] = None
    last_error: Optional[str] = None

    @property
    def status_filter(self):
        """Statuses to send to the repository, in enumeration order."""
        return [status for status in PoleStatus if status in self.selected_statuses]

    def reset_pagination(self):
        """Forget loaded pages before a fresh fetch."""
        self.poles = []
        self.offset = 0
        self.has_more = True


@dataclass
class SessionState:
    """Per-process client state shared by the handlers."""
    profile: Optional[object] = None
    last_capture: Optional[object] = None
    pole_list: PoleListState = field(default_factory=PoleListState)
