# This project was developed with assistance from AI tools.
"""Post-commit side effects.

A workflow operation commits its state change first, then dispatches the
queued effects (binder generation, agency notification). A failing effect
is logged and recorded in its outcome; it never rolls back the committed
transition and never stops the effects queued after it.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


@dataclass
class EffectOutcome:
    name: str
    ok: bool
    value: Any = None
    error: str | None = None


@dataclass
class EffectQueue:
    """Ordered list of effects to run once the owning transaction commits.

    When a session is given, a failed effect's pending writes are rolled back
    so the next effect starts from a clean session.
    """

    session: AsyncSession | None = None
    _effects: list[tuple[str, Callable[..., Awaitable[Any]], tuple, dict]] = field(
        default_factory=list
    )

    def add(self, name: str, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> None:
        self._effects.append((name, func, args, kwargs))

    def __len__(self) -> int:
        return len(self._effects)

    async def dispatch(self) -> list[EffectOutcome]:
        outcomes: list[EffectOutcome] = []
        effects, self._effects = self._effects, []
        for name, func, args, kwargs in effects:
            try:
                value = await func(*args, **kwargs)
            except Exception as exc:
                logger.warning("Post-commit effect %s failed", name, exc_info=True)
                if self.session is not None:
                    await self.session.rollback()
                outcomes.append(EffectOutcome(name=name, ok=False, error=str(exc)))
            else:
                outcomes.append(EffectOutcome(name=name, ok=True, value=value))
        return outcomes
