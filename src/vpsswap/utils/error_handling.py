from __future__ import annotations

from functools import wraps
from typing import Any, Callable, TypeVar, cast

from vpsswap.utils.logging import logger

INTERRUPTED_MESSAGE = "interrupted by user, the swap configuration may be incomplete; run the tool again to finish it"

F = TypeVar("F", bound=Callable[..., Any])


def handle_ctrl_c(func: F) -> F:
  """Turns Ctrl+C into a clean exit. The interruption ends up in the log file, because a run that
  stopped between two reconcile steps leaves the system half-configured."""

  @wraps(func)
  def wrapped(*args: Any, **kwargs: Any) -> Any:
    try:
      return func(*args, **kwargs)
    except KeyboardInterrupt:
      print()
      logger.error(INTERRUPTED_MESSAGE)
      logger.detach()
      raise SystemExit(INTERRUPTED_MESSAGE)

  return cast(F, wrapped)
