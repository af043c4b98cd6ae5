"""Shared context and error containment for section extractors."""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

from ..localization import Localizer, NullLocalizer
from ..models import ExportOptions, SectionKey
from ..source import dig

logger = logging.getLogger(__name__)


@dataclass
class ExtractionContext:
    """
    Per-request state handed from the orchestrator to every extractor.

    Defense option snapshots and derivation status live here rather than on
    the actor, so the shared record stays untouched.
    """

    actor: Any
    localizer: Localizer = field(default_factory=NullLocalizer)
    dodge_options: Optional[List[Any]] = None
    block_options: Optional[List[Any]] = None
    derived: bool = False
    warnings: List[str] = field(default_factory=list)

    @property
    def actor_type(self) -> Optional[str]:
        return dig(self.actor, "type")

    @property
    def system(self) -> Any:
        return dig(self.actor, "system")

    def warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)


def section_guard(options: ExportOptions, section: SectionKey, context: ExtractionContext) -> bool:
    """True if the section should be extracted for this actor."""
    enabled = options.is_enabled(section, context.actor_type)
    if not enabled:
        logger.debug(f"Section '{section.value}' disabled for {context.actor_type}")
    return enabled


def run_extractor(
    section: SectionKey,
    extractor: Callable[[Any, ExportOptions, ExtractionContext], Any],
    zero_value: Callable[[], Any],
    actor: Any,
    options: ExportOptions,
    context: ExtractionContext
) -> Any:
    """
    Run one extractor, containing any failure to its own section.

    Returns:
        The extractor's result (None when the section is disabled), or the
        section's zero value if the extractor raised.
    """
    try:
        return extractor(actor, options, context)
    except Exception as e:
        context.warn(f"Section '{section.value}' could not be extracted, using defaults: {e}")
        return zero_value()


def ensure_context(actor: Any, context: Optional[ExtractionContext]) -> ExtractionContext:
    """Use the orchestrator's context, or a bare one for direct calls."""
    return context if context is not None else ExtractionContext(actor=actor)
