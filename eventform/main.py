"""
Form session runner.

Builds the HTTP collaborators from configuration and drives one event
form session from a set of edits, the way the CLI uses it.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from eventform.api_client import EventApiClient
from eventform.chain_loader import ChainLoader
from eventform.config import FormConfig
from eventform.event_form import EventForm
from eventform.image_host import ImageHostClient
from eventform.image_lifecycle import ImageLifecycleManager
from eventform.notifications import ToastNotifier


# ============================================================================
# Logging Setup
# ============================================================================


def setup_logging(level: str = "INFO") -> logging.Logger:
    """
    Setup logging for the event form.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Configured logger
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    return logging.getLogger("eventform")


# ============================================================================
# Edits
# ============================================================================


@dataclass
class FormEdits:
    """
    Edits to apply to a session, in the order a user would make them.

    None means "leave the field as it is".
    """

    name: Optional[str] = None
    description: Optional[str] = None
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    date_text: Optional[str] = None
    time_text: Optional[str] = None
    categories: Optional[list[str]] = None
    chain_uid: Optional[str] = None
    image_path: Optional[Path] = None


def apply_edits(form: EventForm, edits: FormEdits) -> None:
    """Apply the synchronous field edits to an initialized form."""
    for name in ("name", "description", "address", "latitude", "longitude"):
        value = getattr(edits, name)
        if value is not None:
            form.set_value(name, value)
    if edits.date_text is not None:
        form.edit_date(edits.date_text)
    if edits.time_text is not None:
        form.edit_time(edits.time_text)
    if edits.categories is not None:
        form.set_genders(edits.categories)
    if edits.chain_uid is not None:
        form.select_chain(edits.chain_uid)


# ============================================================================
# Form Runner
# ============================================================================


class FormRunner:
    """
    Runs one event form session against the configured server.

    Attributes:
        config: Form configuration
        notifier: Collected user-facing notifications
        logger: Logger instance
    """

    def __init__(self, config: FormConfig):
        self.config = config
        self.logger = setup_logging(config.log_level)
        self.notifier = ToastNotifier()

    def _api_client(self) -> EventApiClient:
        return EventApiClient(
            server_url=self.config.server_url,
            api_key=self.config.api_key or None,
            timeout=self.config.http_timeout,
        )

    def _image_host(self) -> ImageHostClient:
        return ImageHostClient(
            server_url=self.config.server_url,
            api_key=self.config.api_key or None,
            timeout=self.config.http_timeout,
        )

    async def list_chains(self) -> list:
        """Load the admin chains of the configured user."""
        async with self._api_client() as api:
            user = await api.get_user(self.config.user_uid)
            return await ChainLoader(api.get_chain).load_admin_chains(user)

    async def run(
        self,
        edits: FormEdits,
        event_uid: Optional[str] = None,
        initial_values: Optional[dict[str, Any]] = None,
    ) -> Any:
        """
        Create (or, with event_uid, update) an event.

        Notifications of a previous run are cleared first.

        Args:
            edits: Edits applied after initialization
            event_uid: Existing event to update
            initial_values: Initial values; fetched from the server when
                event_uid is set and none are given

        Returns:
            The server response of the submission
        """
        self.notifier.clear()
        async with self._api_client() as api, self._image_host() as host:
            user = await api.get_user(self.config.user_uid)

            if event_uid and initial_values is None:
                initial_values = await api.get_event(event_uid)

            async def submit(values):
                if event_uid:
                    return await api.update_event(event_uid, values)
                return await api.create_event(values)

            form = EventForm(
                submit=submit,
                image_manager=ImageLifecycleManager(
                    host, self.config.upload_constraints, self.notifier
                ),
                chain_loader=ChainLoader(api.get_chain),
                notifier=self.notifier,
                session_user=user,
                initial_values=initial_values,
                tz=self.config.tzinfo(),
            )
            await form.initialize()
            apply_edits(form, edits)

            if edits.image_path is not None:
                await form.upload_image(Path(edits.image_path).read_bytes())

            self.logger.info(f"Submitting event for {form.date_text} {form.time_text}")
            result = await form.submit()
            self.notifier.info(f"Event '{form.values.name}' submitted")
            return result
