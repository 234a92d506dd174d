"""Client-side lifecycle controller for a single Veo generation operation.

The controller submits a request to the generation proxy, then polls the
returned operation handle on a fixed interval until the provider reports
completion. Everything runs on one asyncio event loop: the submit call and
each status query are the only suspension points, so state is never mutated
concurrently.
"""
import asyncio
from typing import Callable, List, Optional
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from common.error_messages import ERROR_MESSAGES, ErrorCode
from config import Config
from utils.logger import get_logger
from videos.models import (
    GenerateVideoRequest,
    ImmediateResult,
    LifecyclePhase,
    LifecycleState,
    OperationStatus,
    parse_generation_result,
)

logger = get_logger("videos.controller")

StateListener = Callable[[LifecycleState], None]


def _current_task() -> Optional[asyncio.Task]:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None


def _error_text(response: httpx.Response) -> Optional[str]:
    """Pull the `error` field out of a proxy error reply, if there is one."""
    try:
        detail = response.json()
    except ValueError:
        return None
    if isinstance(detail, dict) and isinstance(detail.get("error"), str):
        return detail["error"]
    return None


class OperationLifecycleController:
    """
    Drives one generation request from submission to a terminal outcome.

    Only one operation is tracked at a time; a new `submit` cancels the
    previous one before resetting state.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        poll_interval: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        max_reference_images: Optional[int] = None,
    ):
        self.base_url = (base_url or Config.API_BASE_URL).rstrip("/")
        self.poll_interval = Config.POLL_INTERVAL_SECONDS if poll_interval is None else poll_interval
        self._client = http_client or httpx.AsyncClient(timeout=Config.HTTP_TIMEOUT_SECONDS)
        self.max_reference_images = Config.MAX_REFERENCE_IMAGES if max_reference_images is None else max_reference_images
        self._owns_client = http_client is None
        self._state = LifecycleState()
        self._poll_task: Optional[asyncio.Task] = None
        # Bumped on every submit/cancel; replies carrying an older value are dropped.
        self._generation = 0
        self._listeners: List[StateListener] = []

    async def __aenter__(self) -> "OperationLifecycleController":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # -- read side -----------------------------------------------------------

    def current_state(self) -> LifecycleState:
        """Snapshot of the current state; mutating it has no effect."""
        return self._state.model_copy(deep=True)

    def add_listener(self, listener: StateListener) -> None:
        """Register a callback that receives a snapshot after every change."""
        self._listeners.append(listener)

    @property
    def is_polling(self) -> bool:
        return self._poll_task is not None

    # -- commands ------------------------------------------------------------

    async def submit(self, request: GenerateVideoRequest) -> None:
        """
        Submit a generation request and start tracking it.

        Returns once the submit reply has been handled; polling, if any,
        continues in the background (see `wait`).
        """
        self.cancel()
        token = self._generation
        self._set_state(LifecycleState())

        problem = self._validate(request)
        if problem:
            logger.warning(f"Rejected submission before sending: {problem}")
            self._update(phase=LifecyclePhase.FAILED, error_message=problem)
            return

        self._update(phase=LifecyclePhase.SUBMITTING)
        url = f"{self.base_url}/api/generate-video"
        payload = request.model_dump(by_alias=True)
        payload["prompt"] = request.prompt.strip()

        try:
            response = await self._client.post(url, json=payload)
        except httpx.HTTPError as e:
            if self._is_stale(token):
                return
            logger.error(f"Submit request failed: {e}")
            self._update(phase=LifecyclePhase.FAILED, error_message=str(e) or "Something went wrong.")
            return

        if self._is_stale(token):
            logger.debug("Discarding submit reply for a cancelled submission")
            return

        if response.is_error:
            message = _error_text(response) or f"Request failed with {response.status_code}"
            logger.warning(f"Submit rejected ({response.status_code}): {message}")
            self._update(phase=LifecyclePhase.FAILED, error_message=message)
            return

        try:
            result = parse_generation_result(response.json())
        except (ValidationError, ValueError) as e:
            logger.error(f"Malformed submit reply: {e}")
            self._update(phase=LifecyclePhase.FAILED, error_message="Unexpected response from the generation service.")
            return

        if isinstance(result, ImmediateResult):
            logger.info(f"Submission completed immediately: {result.message}")
            self._update(phase=LifecyclePhase.COMPLETED, message=result.message)
            return

        logger.info(f"Tracking operation {result.operation_id}")
        self._enter_polling(token, result.operation_id, OperationStatus.from_raw(result.raw))

    def cancel(self) -> None:
        """Stop polling and return to idle. Safe to call any number of times."""
        self._release_timer()
        self._generation += 1
        phase = self._state.phase
        if phase != LifecyclePhase.IDLE and not phase.is_terminal:
            logger.info(f"Cancelled tracking of operation {self._state.operation_id or '(pending submit)'}")
            self._update(phase=LifecyclePhase.IDLE)

    async def wait(self) -> LifecycleState:
        """Wait until the current polling loop (if any) ends and return the final state."""
        task = self._poll_task
        if task is not None:
            await asyncio.wait({task})
        return self.current_state()

    async def aclose(self) -> None:
        """Tear down: cancel polling and close the HTTP client if we created it."""
        task = self._poll_task
        self.cancel()
        if task is not None:
            await asyncio.wait({task})
        if self._owns_client:
            await self._client.aclose()

    # -- polling -------------------------------------------------------------

    def _enter_polling(self, token: int, operation_id: str, status: OperationStatus) -> None:
        self._update(
            phase=LifecyclePhase.POLLING,
            operation_id=operation_id,
            last_status=status,
        )
        self._poll_task = asyncio.create_task(self._poll_loop(token, operation_id))

    def _release_timer(self) -> None:
        task, self._poll_task = self._poll_task, None
        if task is not None and not task.done() and task is not _current_task():
            task.cancel()

    async def _poll_loop(self, token: int, operation_id: str) -> None:
        url = f"{self.base_url}/api/operations/{quote(operation_id, safe='')}"
        try:
            while True:
                if await self._poll_once(token, url):
                    return
                await asyncio.sleep(self.poll_interval)
                if self._is_stale(token):
                    return
        except asyncio.CancelledError:
            logger.debug(f"Polling task for {operation_id} cancelled")
            raise
        except Exception as e:
            logger.error(f"Polling loop for {operation_id} crashed: {e}", exc_info=True)
            if not self._is_stale(token):
                self._fail_polling(str(e) or "Failed to poll operation.")

    async def _poll_once(self, token: int, url: str) -> bool:
        """Issue one status query; True when polling should stop."""
        try:
            response = await self._client.get(url)
        except httpx.HTTPError as e:
            if self._is_stale(token):
                return True
            self._fail_polling(str(e) or "Failed to poll operation.")
            return True

        if self._is_stale(token):
            logger.debug("Discarding late status reply")
            return True

        if response.is_error:
            message = f"Polling failed with {response.status_code}"
            detail = _error_text(response)
            if detail:
                message = f"{message}: {detail}"
            self._fail_polling(message)
            return True

        try:
            raw = response.json()
        except ValueError:
            self._fail_polling("Polling returned a response that is not JSON.")
            return True

        status = OperationStatus.from_raw(raw)
        if status.done:
            logger.info(f"Operation {self._state.operation_id} completed")
            self._update(phase=LifecyclePhase.COMPLETED, last_status=status)
            return True

        self._update(last_status=status)
        return False

    def _fail_polling(self, message: str) -> None:
        logger.error(f"Polling operation {self._state.operation_id} failed: {message}")
        self._update(phase=LifecyclePhase.FAILED, error_message=message, operation_id=None)

    # -- state helpers -------------------------------------------------------

    def _is_stale(self, token: int) -> bool:
        return token != self._generation

    def _validate(self, request: GenerateVideoRequest) -> Optional[str]:
        if not request.prompt or not request.prompt.strip():
            return ERROR_MESSAGES[ErrorCode.MISSING_PROMPT]
        if not request.reference_images:
            return ERROR_MESSAGES[ErrorCode.MISSING_REFERENCE_IMAGES]
        if len(request.reference_images) > self.max_reference_images:
            return ERROR_MESSAGES[ErrorCode.TOO_MANY_REFERENCE_IMAGES].format(limit=self.max_reference_images)
        return None

    def _update(self, **changes) -> None:
        new_state = self._state.model_copy(update=changes)
        # Leaving the polling phase always releases the timer.
        if self._state.phase == LifecyclePhase.POLLING and new_state.phase != LifecyclePhase.POLLING:
            self._release_timer()
        self._set_state(new_state)

    def _set_state(self, state: LifecycleState) -> None:
        self._state = state
        if not self._listeners:
            return
        snapshot = self.current_state()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("State listener raised")
