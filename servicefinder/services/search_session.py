"""
Landing-page state for one visitor.

A SearchSession owns everything the landing view needs between keystrokes:
the search text, the selected category, the suggestion list, the current
results and the rotating hero background. Every asyncio task it starts
(debounce timer, in-flight queries, background rotation) belongs to the
session and is cancelled by `close()`.

Results are applied last-write-wins by issuance order: each query that
leaves the debounce timer takes a ticket, and a response whose ticket is no
longer the newest is dropped.
"""
import asyncio
import logging
from contextlib import suppress
from typing import Awaitable, Callable, List, Optional, Set

from servicefinder.db.provider_store import ProviderQueryError, ProviderStore
from servicefinder.models.provider import ProviderProfile
from servicefinder.models.search import BackgroundImage, SearchState
from servicefinder.services.directory import (
    SEARCH_FAILED_MESSAGE,
    ProviderQuery,
    contact_url,
    filter_suggestions,
    toggle_profession,
)

logger = logging.getLogger(__name__)

Listener = Callable[[SearchState], Awaitable[None]]

BACKGROUND_IMAGES = [
    BackgroundImage(
        url="https://images.unsplash.com/photo-1581578731548-c64695cc6952?w=1600&auto=format&fit=crop&q=60",
        description="Diverse group of skilled Indian professionals",
    ),
    BackgroundImage(
        url="https://images.unsplash.com/photo-1530124566582-a618bc2615dc?w=1600&auto=format&fit=crop&q=60",
        description="Tools and equipment",
    ),
    BackgroundImage(
        url="https://images.unsplash.com/photo-1521791136064-7986c2920216?w=1600&auto=format&fit=crop&q=60",
        description="Community working together",
    ),
]


class BackgroundRotator:
    """Cycles through hero images on a fixed interval until stopped."""

    def __init__(
        self,
        images: List[BackgroundImage],
        interval: float,
        on_tick: Optional[Callable[[], Awaitable[None]]] = None,
    ):
        if not images:
            raise ValueError("BackgroundRotator needs at least one image")
        self.images = images
        self.interval = interval
        self.on_tick = on_tick
        self.index = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def current(self) -> BackgroundImage:
        return self.images[self.index]

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    def advance(self) -> BackgroundImage:
        self.index = (self.index + 1) % len(self.images)
        return self.current

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            self.advance()
            if self.on_tick is not None:
                await self.on_tick()


class SearchSession:
    def __init__(
        self,
        store: ProviderStore,
        *,
        debounce_seconds: float = 0.3,
        rotate_seconds: float = 5.0,
        variant: str = "detailed",
        listener: Optional[Listener] = None,
        backgrounds: Optional[List[BackgroundImage]] = None,
    ):
        self.store = store
        self.debounce_seconds = debounce_seconds
        self.listener = listener
        self.rotator = BackgroundRotator(
            backgrounds or BACKGROUND_IMAGES, rotate_seconds, on_tick=self._on_rotate
        )
        self.state = SearchState(variant=variant, background=self.rotator.current)

        self._debounce_task: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()
        self._issued = 0

    async def __aenter__(self) -> "SearchSession":
        await self.start()
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    # ─── Lifecycle ───────────────────────────────────────────────────

    def restore(self, search_term: str = "", profession: Optional[str] = None) -> None:
        """Pick up the query of an already rendered page. Call before `start()`."""
        self.state.search_term = search_term
        self.state.selected_profession = profession or None

    async def start(self) -> None:
        """Fetch the category list once, start the background rotation and run any restored query."""
        await self.load_professions()
        self.state.show_suggestions = False
        self.rotator.start()
        # Restored queries skip the debounce timer; an empty one just publishes
        await self._issue_search()

    async def close(self) -> None:
        await self.rotator.stop()
        tasks = self.owned_tasks()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._debounce_task = None
        self._tasks.clear()

    def owned_tasks(self) -> List[asyncio.Task]:
        return [t for t in self._tasks if not t.done()]

    async def wait_idle(self) -> None:
        """Block until no debounce timer or query is outstanding."""
        while True:
            pending = self.owned_tasks()
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    async def load_professions(self) -> None:
        try:
            professions = await self.store.distinct_professions()
        except ProviderQueryError as e:
            logger.error(f"Error fetching professions: {e}")
            professions = []
        self.state.professions = professions
        self._refresh_suggestions()

    # ─── User actions ────────────────────────────────────────────────

    async def set_search_term(self, text: str) -> None:
        self.state.search_term = text
        self._refresh_suggestions()
        self._schedule_search()
        await self._publish()

    async def choose_suggestion(self, suggestion: str) -> None:
        self.state.search_term = suggestion
        self.state.suggestions = []
        self.state.show_suggestions = False
        self._schedule_search()
        await self._publish()

    async def hide_suggestions(self) -> None:
        self.state.show_suggestions = False
        await self._publish()

    async def toggle_profession(self, profession: str) -> None:
        self.state.selected_profession = toggle_profession(
            self.state.selected_profession, profession
        )
        self._schedule_search()
        await self._publish()

    async def open_profile(self, provider_id: str) -> bool:
        if self.state.variant != "detailed":
            return False
        provider = self._find(provider_id)
        if provider is None:
            return False
        self.state.selected_provider = provider
        await self._publish()
        return True

    async def close_profile(self) -> None:
        self.state.selected_provider = None
        await self._publish()

    def contact(self, provider_id: str) -> Optional[str]:
        """The tel: link for a listed provider. Leaves the selection alone."""
        provider = self._find(provider_id)
        return contact_url(provider.phone) if provider else None

    def snapshot(self) -> SearchState:
        return self.state.model_copy(deep=True)

    # ─── Internals ───────────────────────────────────────────────────

    def _find(self, provider_id: str) -> Optional[ProviderProfile]:
        for worker in self.state.workers:
            if worker.id == provider_id:
                return worker
        return None

    def _refresh_suggestions(self) -> None:
        if self.state.search_term:
            self.state.suggestions = filter_suggestions(
                self.state.professions, self.state.search_term
            )
            self.state.show_suggestions = True
        else:
            self.state.suggestions = []
            self.state.show_suggestions = False

    def _schedule_search(self) -> None:
        if self._debounce_task is not None:
            self._debounce_task.cancel()
        self._debounce_task = self._spawn(self._debounced_search())

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _debounced_search(self) -> None:
        await asyncio.sleep(self.debounce_seconds)
        # Past this point a newer change schedules a fresh timer instead of cancelling us
        self._debounce_task = None
        await self._issue_search()

    async def _issue_search(self) -> None:
        query = ProviderQuery(
            search_term=self.state.search_term,
            profession=self.state.selected_profession,
        )
        self._issued += 1
        ticket = self._issued

        if query.is_empty:
            self.state.workers = []
            self.state.loading = False
            self.state.error = None
            await self._publish()
            return

        self.state.loading = True
        self.state.error = None
        self._spawn(self._run_query(ticket, query))
        await self._publish()

    async def _run_query(self, ticket: int, query: ProviderQuery) -> None:
        try:
            results = await self.store.search(query)
            workers = [ProviderProfile.from_provider(p) for p in results]
        except ProviderQueryError as e:
            if ticket != self._issued:
                return
            logger.error(f"Error searching workers: {e}")
            self.state.error = SEARCH_FAILED_MESSAGE
        except Exception:
            if ticket != self._issued:
                return
            logger.exception(f"Unexpected error searching workers for {query!r}")
            self.state.error = SEARCH_FAILED_MESSAGE
        else:
            if ticket != self._issued:
                logger.debug(f"Dropping stale results for ticket {ticket} (latest {self._issued})")
                return
            self.state.workers = workers
        finally:
            if ticket == self._issued:
                self.state.loading = False
        await self._publish()

    async def _on_rotate(self) -> None:
        self.state.background = self.rotator.current
        await self._publish()

    async def _publish(self) -> None:
        if self.listener is not None:
            await self.listener(self.snapshot())
