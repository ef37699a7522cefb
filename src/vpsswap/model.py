from __future__ import annotations

from typing import Callable, Literal, TypeAlias

SwapAction: TypeAlias = Literal["no-action-needed", "create", "resize"]

MIB = 1024 * 1024


class MemoryProfile:
  """Memory situation of the machine, sampled once at the start of a run."""
  total_mem_mb: int
  current_swap_mb: int

  def __init__(self, total_mem_mb: int, current_swap_mb: int):
    self.total_mem_mb = total_mem_mb
    self.current_swap_mb = current_swap_mb

  def __str__(self):
    return f"Memory: {self.total_mem_mb}MB, Current SWAP: {self.current_swap_mb}MB"


class DiskSpace:
  total_mb: int
  free_mb: int

  def __init__(self, total_mb: int, free_mb: int):
    self.total_mb = total_mb
    self.free_mb = free_mb


class SwapPlan:
  """The result of the planning phase: how much swap the machine should have and what needs to happen to get there."""
  profile: MemoryProfile
  recommended_mb: int
  target_mb: int
  action: SwapAction

  def __init__(self, profile: MemoryProfile, recommended_mb: int, target_mb: int, action: SwapAction):
    assert target_mb > 0, f"target size must be positive: {target_mb}"
    assert (action == "no-action-needed") == (target_mb <= profile.current_swap_mb), f"inconsistent action {action} for {target_mb}MB"
    self.profile = profile
    self.recommended_mb = recommended_mb
    self.target_mb = target_mb
    self.action = action

  def __str__(self):
    return f"SwapPlan(action = {self.action}, target = {self.target_mb}MB, recommended = {self.recommended_mb}MB)"


class Action:
  """A single numbered reconcile step. Steps are executed in order and the first failing one aborts the run."""
  step: int
  description: str
  execute: Callable[[], None]
  additional_info: list[str]

  def __init__(
    self,
    step: int,
    description: str,
    execute: Callable[[], None],
    additional_info: list[str] | str | None = None,
  ):
    self.step = step
    self.description = description
    self.execute = execute
    self.additional_info = [additional_info] if isinstance(additional_info, str) else (additional_info or [])


class ReconcileResult:
  plan: SwapPlan
  completed_steps: list[int]
  warnings: list[str]

  def __init__(self, plan: SwapPlan, completed_steps: list[int] | None = None, warnings: list[str] | None = None):
    self.plan = plan
    self.completed_steps = completed_steps or []
    self.warnings = warnings or []
