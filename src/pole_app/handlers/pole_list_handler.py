"""Paginated, sorted and filtered list of this device's poles."""
import logging
import threading

from shared.enums import PoleStatus, SortOrder
from shared.errors import PoleCaptureError


class PoleListHandler:
    """Drives the pole list: refresh, infinite scroll, sort and status filter.

    Only one fetch runs at a time. A request arriving while another is in
    flight is dropped, not queued.
    """

    def __init__(self, app):
        self.app = app
        self.logger = logging.getLogger(self.__class__.__name__)
        self._fetch_lock = threading.Lock()

    @property
    def state(self):
        return self.app.state.pole_list

    @property
    def poles(self):
        return self.state.poles

    def _fetch(self, reset):
        if not self._fetch_lock.acquire(blocking=False):
            self.logger.debug("Fetch already in progress, dropping request")
            return False

        state = self.state
        try:
            if not reset and not state.has_more:
                return False

            state.loading = True
            state.refreshing = reset
            offset = 0 if reset else state.offset

            if state.sort_by == SortOrder.NEAREST and state.user_location is None:
                state.user_location = self.app.location_service.get_current_location()

            try:
                page = self.app.repository.list_poles(
                    limit=state.page_size,
                    offset=offset,
                    sort_by=state.sort_by,
                    user_location=state.user_location,
                    status_filter=state.status_filter,
                )
            except (PoleCaptureError, ValueError) as e:
                self.logger.error(f"Error fetching poles: {e}")
                state.last_error = str(e)
                return False

            state.last_error = None
            state.poles = page if reset else state.poles + page
            state.offset = offset + len(page)
            # A full page means "maybe more"; an exact multiple costs one empty fetch
            state.has_more = len(page) == state.page_size
            return True
        finally:
            state.loading = False
            state.refreshing = False
            self._fetch_lock.release()

    def refresh(self):
        """Reload from the first page. Returns False if dropped or failed."""
        return self._fetch(reset=True)

    def load_more(self):
        """Append the next page when more may exist."""
        return self._fetch(reset=False)

    def change_sort(self, sort_by):
        sort_by = SortOrder(sort_by)
        if sort_by == self.state.sort_by:
            return False
        self.state.sort_by = sort_by
        if sort_by != SortOrder.NEAREST:
            self.state.user_location = None
        self.state.reset_pagination()
        return self.refresh()

    def toggle_status(self, status):
        status = PoleStatus(status)
        selected = self.state.selected_statuses
        if status in selected:
            selected.discard(status)
        else:
            selected.add(status)
        self.state.reset_pagination()
        return self.refresh()

    def select_all_statuses(self):
        self.state.selected_statuses = set(PoleStatus)
        self.state.reset_pagination()
        return self.refresh()

    def clear_all_statuses(self):
        # An empty selection sends no filter, so this lists every pole too
        self.state.selected_statuses = set()
        self.state.reset_pagination()
        return self.refresh()
