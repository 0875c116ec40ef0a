"""
Event form session core.

This package provides a headless editing session for "event" entities:
typed field state, date/time draft synchronization, the lifecycle of an
externally hosted event image, and concurrent loading of the chains
(loops) an event can be attached to.

Key modules:
- form_state: Generic field store with change notification
- datetime_sync: Merging date and time edits into one canonical timestamp
- image_lifecycle: Upload / replace / discard of the hosted event image
- chain_loader: Concurrent fan-out loading of related chains
- event_form: Session orchestration and submission
- api_client / image_host: HTTP collaborators
"""

import os
from importlib import metadata


def _get_version() -> str:
    """
    Get version with priority: EVENTFORM_VERSION env var > package metadata > fallback.

    Priority:
    1. EVENTFORM_VERSION env var - explicit runtime override
    2. Installed distribution metadata
    3. Fallback - unknown version
    """
    env_version = os.environ.get('EVENTFORM_VERSION')
    if env_version:
        return env_version

    try:
        return metadata.version('eventform')
    except metadata.PackageNotFoundError:
        pass

    return '0.0.0-dev+unknown'


__version__ = _get_version()
