"""Provider registry and weighted provider selection.

``ProviderRegistry`` owns one initialized instance of every known provider and describes them as
``ProviderDescriptor`` values. ``ProviderSelector`` turns an engine hint into a provider id.

Automatic selection is deterministic: the draw is a rotating counter taken modulo the total weight,
not a random number. Over ``total`` consecutive calls every configured provider is picked exactly
``weight`` times, which gives the configured ratio without any randomness.
"""

from __future__ import annotations

import itertools
from typing import TYPE_CHECKING, Final

# Importing the engines package registers every provider with TransInterface.
import core.trans.engines  # noqa: F401
from core.trans.interface import TransInterface, TranslateExceptionError
from core.trans.languages import AUTO_LANGUAGE
from models.translation_models import ProviderDescriptor
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Mapping, Sequence

    from config.loader import Config

__all__: list[str] = ["AUTO_ENGINE", "BUILT_IN_ENGINE", "ProviderRegistry", "ProviderSelector", "pick_weighted"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

AUTO_ENGINE: Final[str] = AUTO_LANGUAGE
BUILT_IN_ENGINE: Final[str] = "built_in"


class ProviderRegistry:
    """Holds initialized provider instances keyed by provider id."""

    def __init__(self, config: Config, engine_classes: Mapping[str, type[TransInterface]] | None = None) -> None:
        """Initialize the registry.

        Args:
            config (Config): Configuration holding credentials and selection weights.
            engine_classes (Mapping[str, type[TransInterface]] | None): Provider classes by id.
                Defaults to every class registered with ``TransInterface``.
        """
        self.config: Config = config
        self._engine_classes: dict[str, type[TransInterface]] = dict(
            engine_classes if engine_classes is not None else TransInterface.registered
        )
        self._instances: dict[str, TransInterface] = {}
        logger.debug("Known translation engines: %s", list(self._engine_classes))

    def initialize(self) -> None:
        """Instantiate and initialize every provider.

        A provider whose setup fails is logged and left out; the others stay usable.
        """
        self._instances.clear()
        for name, cls in self._engine_classes.items():
            instance: TransInterface = cls()
            try:
                instance.initialize(self.config)
            except RuntimeError as err:
                logger.critical("RuntimeError in '%s' translation setup: %s", name, err)
                continue
            except TranslateExceptionError as err:
                logger.critical("Exception in '%s' translation setup: %s", name, err)
                continue
            self._instances[name] = instance
            logger.info("Translation engine initialized: '%s' (configured: %s)", name, instance.is_configured)

    async def reload(self, config: Config) -> None:
        """Re-create every provider from a new configuration, e.g. after credentials changed."""
        await self.close()
        self.config = config
        self.initialize()
        logger.info("Translation engines reloaded; configured: %s", self.configured_ids())

    def get(self, engine_id: str) -> TransInterface | None:
        return self._instances.get(engine_id)

    def __contains__(self, engine_id: object) -> bool:
        return engine_id in self._instances

    def weight_of(self, engine_id: str) -> int:
        weights: Mapping[str, int] = self.config.TRANSLATION.ENGINE_WEIGHTS or {}
        return max(int(weights.get(engine_id, 0)), 0)

    def descriptors(self) -> list[ProviderDescriptor]:
        """Describe every initialized provider, in registration order."""
        return [
            ProviderDescriptor(
                id=name,
                display_name=instance.display_name,
                weight=self.weight_of(name),
                is_configured=instance.is_configured,
                requires_credentials=instance.requires_credentials,
                marker=instance.marker,
            )
            for name, instance in self._instances.items()
        ]

    def configured_ids(self) -> list[str]:
        return [name for name, instance in self._instances.items() if instance.is_configured]

    async def close(self) -> None:
        for name, instance in self._instances.items():
            try:
                await instance.close()
            except TranslateExceptionError as err:
                logger.error("Failed to close translation engine '%s': %s", name, err)
        self._instances.clear()


def pick_weighted(descriptors: Sequence[ProviderDescriptor], draw: int) -> str:
    """Walk the providers accumulating weight until ``draw`` falls inside a share.

    Args:
        descriptors (Sequence[ProviderDescriptor]): Candidates, each with a positive weight.
        draw (int): Value in ``[0, total weight)``.

    Returns:
        str: Id of the provider whose share contains ``draw``.

    Raises:
        ValueError: If there are no candidates or ``draw`` lies outside the total weight.
    """
    cumulative: int = 0
    for descriptor in descriptors:
        cumulative += descriptor.weight
        if draw < cumulative:
            return descriptor.id
    msg: str = f"Draw {draw} outside total weight {cumulative}"
    raise ValueError(msg)


class ProviderSelector:
    """Resolves an engine hint to a provider id."""

    def __init__(self, registry: ProviderRegistry, fallback: str = BUILT_IN_ENGINE) -> None:
        self.registry: ProviderRegistry = registry
        self.fallback: str = fallback
        self._counter: itertools.count[int] = itertools.count()

    @staticmethod
    def is_auto(hint: str | None) -> bool:
        return not hint or hint.strip().lower() == AUTO_ENGINE

    def candidates(self) -> list[ProviderDescriptor]:
        """Providers eligible for automatic selection.

        Keyless providers are excluded; they only serve as the fallback or when named explicitly.
        """
        return [
            descriptor
            for descriptor in self.registry.descriptors()
            if descriptor.is_configured and descriptor.requires_credentials and descriptor.weight > 0
        ]

    def select_provider(self, hint: str | None) -> str:
        """Return the provider id to use for ``hint``.

        A concrete id is returned unchanged. ``"auto"`` or an empty hint picks among the configured
        providers by weight, or returns the fallback id when none is configured.

        Args:
            hint (str | None): Provider id, ``"auto"``, or None.

        Returns:
            str: The provider id.
        """
        if not self.is_auto(hint):
            return hint.strip()

        pool: list[ProviderDescriptor] = self.candidates()
        if not pool:
            logger.debug("No configured translation engine; falling back to '%s'", self.fallback)
            return self.fallback

        total: int = sum(descriptor.weight for descriptor in pool)
        draw: int = next(self._counter) % total
        selected: str = pick_weighted(pool, draw)
        logger.debug("Automatic selection: '%s' (draw %d of %d)", selected, draw, total)
        return selected
