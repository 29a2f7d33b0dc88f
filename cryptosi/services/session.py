from __future__ import annotations

import logging
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import List, Optional

from ..catalog import list_models
from ..config import get_settings
from ..schemas.generation import FormSnapshot, Notification, NotificationStatus
from ..utils.errors import GenerationError, GenerationInProgressError
from .composer import compose_request
from .form_state import FormState
from .hyperbolic import HyperbolicClient, hyperbolic_client

logger = logging.getLogger("cryptosi.session")

# Display durations in milliseconds
SHORT_NOTICE = 3000
LONG_NOTICE = 5000


@dataclass
class FormSession:
    session_id: str
    state: FormState = field(default_factory=FormState)
    is_loading: bool = False
    result: Optional[str] = None
    notifications: List[Notification] = field(default_factory=list)
    _next_notification_id: int = 1

    def notify(self, title: str, description: str, status: NotificationStatus, duration: int = SHORT_NOTICE) -> Notification:
        notification = Notification(
            id=self._next_notification_id,
            title=title,
            description=description,
            status=status,
            duration=duration,
        )
        self._next_notification_id += 1
        self.notifications.append(notification)
        return notification

    def dismiss(self, notification_id: int) -> None:
        self.notifications = [n for n in self.notifications if n.id != notification_id]

    async def generate(
        self,
        api_key: Optional[str],
        origin: Optional[str] = None,
        client: Optional[HyperbolicClient] = None,
    ) -> str:
        """Validate, submit and store the result; errors are also recorded as notifications."""
        if self.is_loading:
            raise GenerationInProgressError("A generation is already in progress")

        try:
            composed = compose_request(self.state, api_key)
        except GenerationError as exc:
            self.notify("Error", exc.message, "error")
            raise

        for warning in composed.warnings:
            self.notify("Warning", warning, "warning", duration=LONG_NOTICE)

        client = client or hyperbolic_client
        self.is_loading = True
        try:
            image_url = await client.generate(composed.payload, api_key, origin=origin)
        except GenerationError as exc:
            logger.warning("Generation failed for session %s: %s", self.session_id, exc.message)
            self.notify("Error", exc.message, "error", duration=LONG_NOTICE)
            raise
        finally:
            self.is_loading = False

        self.result = image_url
        self.notify("Success", "Image generated successfully!", "success")
        return image_url

    def snapshot(self) -> FormSnapshot:
        state = self.state
        return FormSnapshot(
            model_name=state.model_name,
            prompt=state.prompt,
            negative_prompt=state.negative_prompt,
            use_common_negatives=state.use_common_negatives,
            width=state.width,
            height=state.height,
            steps=state.steps,
            cfg_scale=state.cfg_scale,
            controlnet_name=state.controlnet_name,
            controlnet_image=state.controlnet_image,
            init_image=state.init_image,
            temperature=state.temperature,
            enable_refiner=state.enable_refiner,
            capabilities=state.capabilities.to_dict(),
            models=list_models(),
            is_loading=self.is_loading,
            result=self.result,
            notifications=list(self.notifications),
        )


class SessionStore:
    """In-memory form sessions keyed by cookie value. Nothing is persisted.

    At most `max_sessions` are kept; the least recently used one is evicted
    when a new session would exceed the limit.
    """

    def __init__(self, max_sessions: Optional[int] = None):
        self._sessions: OrderedDict[str, FormSession] = OrderedDict()
        self._max_sessions = max_sessions

    @property
    def max_sessions(self) -> int:
        return self._max_sessions or get_settings().max_sessions

    def get_or_create(self, session_id: Optional[str]) -> FormSession:
        if session_id and session_id in self._sessions:
            # Move to end (LRU)
            self._sessions.move_to_end(session_id)
            return self._sessions[session_id]
        new_id = uuid.uuid4().hex
        session = FormSession(session_id=new_id)
        self._add(session)
        logger.debug("Created form session %s", new_id)
        return session

    def _add(self, session: FormSession) -> None:
        while len(self._sessions) >= self.max_sessions:
            evicted_id, _ = self._sessions.popitem(last=False)
            logger.debug("Evicted form session %s", evicted_id)
        self._sessions[session.session_id] = session

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def clear(self) -> None:
        self._sessions.clear()

    def __len__(self) -> int:
        return len(self._sessions)


session_store = SessionStore()
