"""Google review redirect with device-specific fallbacks.

Mobile opens the review page in the same tab, falling back to a new window.
Desktop opens a new tab through a temporary anchor element that is clicked
and removed (popup blockers accept that where they reject a bare
window.open), falling back to window.open.

Navigation is fire-and-forget: nothing reports when the other tab finished
loading. After a successful attempt the page waits a fixed delay, then shows
the completion screen. If every attempt fails the completion screen appears
at once with the "open now" button. Either way the respondent ends on a
final screen, and the manual button is always offered.
"""
import asyncio
import inspect
import logging
from typing import Dict, List, Optional, Protocol

from reviewhub.core.config import settings
from reviewhub.core.errors import DispatchError
from reviewhub.schemas.redirect import (
    DeviceClass,
    DispatchResult,
    DispatchStatus,
    NavigationStrategy,
    RedirectPlan,
    RedirectResolution,
    RedirectViewState,
)

logger = logging.getLogger(__name__)

STRATEGIES: Dict[DeviceClass, List[NavigationStrategy]] = {
    DeviceClass.MOBILE: [NavigationStrategy.SAME_TAB, NavigationStrategy.NEW_CONTEXT],
    DeviceClass.DESKTOP: [NavigationStrategy.ANCHOR_CLICK, NavigationStrategy.NEW_CONTEXT],
}


class Navigator(Protocol):
    """Browser side effects. Any method may raise; sync or async both work."""

    def navigate(self, url: str) -> None: ...

    def open_new_tab(self, url: str) -> None: ...

    def click_anchor(self, url: str) -> None: ...


def strategies_for(device: DeviceClass) -> List[NavigationStrategy]:
    return list(STRATEGIES[device])


class RedirectDispatcher:
    def __init__(
        self,
        navigator: Optional[Navigator] = None,
        completion_delay: Optional[float] = None,
        attempt_timeout: Optional[float] = None,
    ):
        self.navigator = navigator
        self.completion_delay = (
            settings.REDIRECT_COMPLETION_DELAY_SECONDS if completion_delay is None else completion_delay
        )
        self.attempt_timeout = (
            settings.REDIRECT_ATTEMPT_TIMEOUT_SECONDS if attempt_timeout is None else attempt_timeout
        )

    def plan(self, url: str, device: DeviceClass) -> RedirectPlan:
        """Redirect instructions for a browser to execute itself."""
        return RedirectPlan(
            url=url,
            device=device,
            strategies=strategies_for(device),
            completion_delay_ms=int(self.completion_delay * 1000),
            manual_open_url=url,
        )

    def _action(self, strategy: NavigationStrategy):
        if self.navigator is None:
            raise DispatchError("No navigator attached")
        if strategy == NavigationStrategy.SAME_TAB:
            return self.navigator.navigate
        if strategy == NavigationStrategy.ANCHOR_CLICK:
            return self.navigator.click_anchor
        return self.navigator.open_new_tab

    async def _attempt(self, strategy: NavigationStrategy, url: str) -> None:
        action = self._action(strategy)
        if inspect.iscoroutinefunction(action):
            call = action(url)
        else:
            call = asyncio.to_thread(action, url)
        try:
            await asyncio.wait_for(call, timeout=self.attempt_timeout)
        except asyncio.TimeoutError as e:
            raise DispatchError(f"{strategy.value} timed out after {self.attempt_timeout}s") from e

    async def dispatch(self, url: str, device: DeviceClass) -> DispatchResult:
        """Try each strategy for the device in order; never raises."""
        errors = []
        for strategy in strategies_for(device):
            try:
                await self._attempt(strategy, url)
            except Exception as e:
                logger.warning(f"Redirect via {strategy.value} failed on {device.value}: {e}")
                errors.append(f"{strategy.value}: {e}")
                continue
            logger.info(f"Redirected to {url} via {strategy.value} ({device.value})")
            return DispatchResult(status=DispatchStatus.SUCCEEDED, strategy=strategy, errors=errors)

        logger.error(f"All redirect strategies failed for {url} ({device.value})")
        return DispatchResult(status=DispatchStatus.FAILED, errors=errors)

    async def resolve(self, url: str, device: DeviceClass) -> RedirectResolution:
        """Dispatch, then settle the page on its final screen."""
        result = await self.dispatch(url, device)
        if result.succeeded:
            await asyncio.sleep(self.completion_delay)
            view = RedirectViewState.COMPLETED
        else:
            view = RedirectViewState.RETRY_OFFERED
        return RedirectResolution(view=view, dispatch=result, manual_open_url=url)

    async def open_now(self, url: str, device: DeviceClass) -> RedirectResolution:
        """The manual "open the review page" button."""
        return await self.resolve(url, device)
