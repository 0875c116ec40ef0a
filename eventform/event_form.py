"""
Event form session.

EventForm wires the field store, the date/time drafts, the image
lifecycle and the chain loader together and owns submission. It is the
only component that knows the concrete shape of an event.

Lifecycle:
    INITIALIZING -> EDITING -> SUBMITTING -> SUBMITTED
                      ^            |
                      +-- failure -+
"""

import logging
from datetime import tzinfo
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Union

from eventform.chain_loader import AggregateFetchError, ChainLoader
from eventform.datetime_sync import DateTimeDrafts, is_valid_timestamp
from eventform.form_state import FormState
from eventform.image_host import DeleteError, UploadError
from eventform.image_lifecycle import ImageLifecycleManager
from eventform.models import (
    Chain,
    EventValues,
    ImageResource,
    SessionUser,
    unique_categories,
    utc_now_iso,
)
from eventform.notifications import Notifier, error_message

logger = logging.getLogger("eventform.event_form")

SubmitCallback = Callable[[EventValues], Awaitable[Any]]


class FormPhase(str, Enum):
    INITIALIZING = "initializing"
    EDITING = "editing"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"


class FormStateError(Exception):
    """Raised when an action is not allowed in the current phase."""

    pass


class EventForm:
    """
    One create/edit session of an event.

    Attributes:
        phase: Current lifecycle phase
        state: Field store of the event values
        drafts: Date and time text buffers
        chains: Chains the session user administers
    """

    def __init__(
        self,
        submit: SubmitCallback,
        image_manager: ImageLifecycleManager,
        chain_loader: ChainLoader,
        notifier: Notifier,
        session_user: SessionUser,
        initial_values: Optional[Union[EventValues, dict[str, Any]]] = None,
        tz: Optional[tzinfo] = None,
    ):
        """
        Initialize the session.

        Args:
            submit: Async callable receiving the final values
            image_manager: Owner of the hosted event image
            chain_loader: Loader for the related chains
            notifier: Channel for user-facing errors
            session_user: User the session acts for
            initial_values: Values of an existing event, defaults when None
            tz: Calendar frame for the date/time drafts, None for system local
        """
        self._submit = submit
        self._images = image_manager
        self._chain_loader = chain_loader
        self._notifier = notifier
        self._user = session_user
        self._initial_values = initial_values
        self._tz = tz

        self._phase = FormPhase.INITIALIZING
        self._state: FormState[EventValues] = FormState(EventValues())
        self._drafts = DateTimeDrafts(tz=tz)
        self._chains: list[Chain] = []

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def phase(self) -> FormPhase:
        return self._phase

    @property
    def state(self) -> FormState[EventValues]:
        return self._state

    @property
    def values(self) -> EventValues:
        """Snapshot of the current values."""
        return self._state.snapshot()

    @property
    def drafts(self) -> DateTimeDrafts:
        return self._drafts

    @property
    def date_text(self) -> str:
        return self._drafts.date_text

    @property
    def time_text(self) -> str:
        return self._drafts.time_text

    @property
    def chains(self) -> list[Chain]:
        return list(self._chains)

    @property
    def image_url(self) -> str:
        return self._state.get("image_url")

    @property
    def can_delete_image(self) -> bool:
        return self._images.can_delete

    @property
    def image_controls_enabled(self) -> bool:
        """False while an upload is in flight."""
        return not self._images.is_uploading

    # -------------------------------------------------------------------------
    # Initialization
    # -------------------------------------------------------------------------

    async def initialize(self) -> None:
        """
        Derive the initial values and drafts and load the related chains.

        A failed chain batch leaves the chain list empty and is reported
        through the notifier; the session still becomes editable.
        """
        if self._phase is not FormPhase.INITIALIZING:
            raise FormStateError(f"Cannot initialize a form in phase {self._phase.value}")

        values = self._build_initial_values()
        self._state.set_all(values)
        self._drafts = DateTimeDrafts.from_timestamp(values.date, self._tz)
        if values.image_url:
            self._images.adopt_existing(values.image_url)

        try:
            self._chains = await self._chain_loader.load_admin_chains(self._user)
        except AggregateFetchError as e:
            logger.error(f"Unable to get loops: {e}")
            self._chains = []
            self._notifier.error(error_message(e), e.status_code)

        self._phase = FormPhase.EDITING
        logger.debug(f"Form ready with {len(self._chains)} chains")

    def _build_initial_values(self) -> EventValues:
        initial = self._initial_values
        if initial is None:
            values = EventValues()
        elif isinstance(initial, EventValues):
            values = initial.copy()
        else:
            values = EventValues.from_dict(initial)

        if not is_valid_timestamp(values.date):
            logger.warning(f"Invalid initial date {values.date!r}, using current time")
            values.date = utc_now_iso()
        values.genders = unique_categories(values.genders)
        return values

    # -------------------------------------------------------------------------
    # Editing
    # -------------------------------------------------------------------------

    def _ensure_editable(self) -> None:
        if self._phase is FormPhase.SUBMITTED:
            raise FormStateError("Form has already been submitted")

    def _ensure_image_editable(self) -> None:
        if self._phase in (FormPhase.SUBMITTING, FormPhase.SUBMITTED):
            raise FormStateError(
                f"Cannot change the image of a form in phase {self._phase.value}"
            )

    def set_value(self, name: str, value: Any) -> None:
        """
        Set a plain field.

        The date, category, chain and image fields have dedicated methods
        that keep their invariants; they are routed there.
        """
        self._ensure_editable()
        if name == "image_url":
            raise ValueError("image_url is managed through upload_image/delete_image")
        if name == "genders":
            self.set_genders(value)
        elif name == "chain_uid":
            self.select_chain(value)
        elif name == "date":
            if not is_valid_timestamp(value):
                raise ValueError(f"Invalid timestamp: {value!r}")
            self._state.set("date", value)
        else:
            self._state.set(name, value)

    def edit_date(self, text: Optional[str]) -> str:
        """
        Apply a date control edit.

        Returns:
            The canonical timestamp after the edit
        """
        self._ensure_editable()
        current = self._state.get("date")
        updated = self._drafts.commit_date(text, current)
        if updated != current:
            self._state.set("date", updated)
        return updated

    def edit_time(self, text: Optional[str]) -> str:
        """Apply a time control edit."""
        self._ensure_editable()
        current = self._state.get("date")
        updated = self._drafts.commit_time(text, current)
        if updated != current:
            self._state.set("date", updated)
        return updated

    def set_genders(self, categories: list[str]) -> None:
        self._ensure_editable()
        self._state.set("genders", unique_categories(list(categories)))

    def select_chain(self, chain_uid: str) -> None:
        """
        Attach the event to one of the loaded chains; "" detaches it.

        Raises:
            ValueError: If chain_uid is not one of the loaded chains
        """
        self._ensure_editable()
        chain_uid = chain_uid or ""
        if chain_uid and chain_uid not in {c.uid for c in self._chains}:
            raise ValueError(f"Unknown chain: {chain_uid}")
        self._state.set("chain_uid", chain_uid)

    # -------------------------------------------------------------------------
    # Image
    # -------------------------------------------------------------------------

    async def upload_image(self, data: bytes) -> Optional[ImageResource]:
        """
        Upload a new event image, replacing the current one.

        Returns:
            The uploaded resource, or None when the upload was refused or failed

        Raises:
            FormStateError: If the form is being or has been submitted
        """
        self._ensure_image_editable()
        if self._images.is_uploading:
            logger.warning("Image upload requested while another upload is in flight")
            self._notifier.error("An image upload is already in progress")
            return None

        try:
            resource = await self._images.upload(data)
        except UploadError as e:
            self._notifier.error(error_message(e), e.status_code)
            return None

        self._state.set("image_url", resource.public_url)
        return resource

    async def delete_image(self) -> bool:
        """
        Remove the uploaded event image.

        Returns:
            True if an image was discarded
        """
        self._ensure_image_editable()
        if self._images.is_uploading:
            logger.warning("Image delete requested while an upload is in flight")
            self._notifier.error("Wait for the image upload to finish")
            return False
        if not self._images.can_delete:
            return False

        try:
            await self._images.discard()
        except DeleteError as e:
            self._notifier.error(error_message(e), e.status_code)
        finally:
            self._state.set("image_url", self._images.public_url)
        return True

    # -------------------------------------------------------------------------
    # Submission
    # -------------------------------------------------------------------------

    async def submit(self) -> Any:
        """
        Hand the complete values to the submit callback.

        On failure the form returns to EDITING with every value intact and
        the error is re-raised for the caller to report.

        Returns:
            Whatever the submit callback returned

        Raises:
            FormStateError: If the form is not in EDITING or an image upload
                is still in flight
        """
        if self._phase is not FormPhase.EDITING:
            raise FormStateError(f"Cannot submit a form in phase {self._phase.value}")
        if self._images.is_uploading:
            raise FormStateError("Cannot submit while an image upload is in flight")

        snapshot = self._state.snapshot()
        self._phase = FormPhase.SUBMITTING
        try:
            result = await self._submit(snapshot)
        except Exception as e:
            logger.error(f"Submitting event '{snapshot.name}' failed: {e}")
            self._phase = FormPhase.EDITING
            raise

        self._phase = FormPhase.SUBMITTED
        return result
