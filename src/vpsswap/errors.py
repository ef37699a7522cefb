from __future__ import annotations

from typing import Sequence


class SwapConfigError(Exception):
  """Base class for everything that aborts a swap configuration run without crashing the program.
  The operator is expected to read the message, fix the cause and run the tool again."""
  pass


class ValidationError(SwapConfigError):
  """Malformed or out-of-range input. Raised before anything on the system was touched."""
  pass


class ResourceError(SwapConfigError):
  """Disk space, allocation or swap (de)activation failed."""
  pass


class StateError(SwapConfigError):
  """A line of the mount table could not be interpreted safely."""
  line: str

  def __init__(self, message: str, line: str):
    super().__init__(message)
    self.line = line


class LockError(SwapConfigError):
  pass


class StepError(SwapConfigError):
  """Wraps the failure of a single reconcile step, remembering which steps already went through
  (those are not rolled back)."""
  step: int
  description: str
  cause: Exception
  completed_steps: Sequence[int]

  def __init__(self, step: int, description: str, cause: Exception, completed_steps: Sequence[int]):
    super().__init__(f"step {step} ({description}) failed: {cause}")
    self.step = step
    self.description = description
    self.cause = cause
    self.completed_steps = list(completed_steps)
