from __future__ import annotations

import os
from contextlib import suppress
from subprocess import CalledProcessError
from typing import Callable, Generator

from vpsswap.config import RunConfig
from vpsswap.errors import ResourceError, StepError
from vpsswap.managers.fstab import FstabReconciler
from vpsswap.managers.sysctl import SysctlManager
from vpsswap.model import Action, MIB, ReconcileResult, SwapPlan
from vpsswap.system import SystemAdapter
from vpsswap.utils.json_store import JsonStore
from vpsswap.utils.logging import logger
from vpsswap.utils.text import *


class SwapfileManager:
  """Turns a SwapPlan into the ordered list of reconcile steps and executes them. Every step is
  idempotent on its own, so a run that failed halfway can simply be repeated."""
  config: RunConfig
  system: SystemAdapter
  fstab: FstabReconciler
  sysctl: SysctlManager
  warnings: list[str]

  def __init__(self, config: RunConfig, system: SystemAdapter, store: JsonStore):
    self.config = config
    self.system = system
    self.fstab = FstabReconciler(
      fstab = config.fstab,
      backup = config.fstab_backup,
      swapfile = config.swapfile,
      store = store,
    )
    self.sysctl = SysctlManager(config.sysctl_conf)
    self.warnings = []

  @property
  def swapfile(self) -> str:
    return self.config.swapfile

  def swapfile_exists(self) -> bool:
    return os.path.isfile(self.swapfile)

  def get_actions(self, plan: SwapPlan) -> Generator[Action]:
    if plan.action == "no-action-needed":
      return
    yield Action(
      step = 1,
      description = f"{YELLOW}deactivate existing swapfile",
      additional_info = self.swapfile,
      execute = self.deactivate_swapfile,
    )
    yield Action(
      step = 2,
      description = f"{YELLOW}remove mount table entries of the swapfile",
      additional_info = self.config.fstab,
      execute = self.fstab.remove_own_entries,
    )
    yield Action(
      step = 3,
      description = f"{RED}delete existing swapfile",
      additional_info = self.swapfile,
      execute = self.delete_swapfile,
    )
    yield Action(
      step = 4,
      description = f"{CYAN}backup mount table (once)",
      additional_info = f"{self.config.fstab} => {self.config.fstab_backup}",
      execute = self.fstab.ensure_backup,
    )
    yield Action(
      step = 5,
      description = f"{YELLOW}disable and deactivate other swap entries in mount table",
      additional_info = [f"{entry.line}" for entry in self.fstab.other_active_swaps()],
      execute = self.disable_other_swaps,
    )
    yield Action(
      step = 6,
      description = f"{GREEN}allocate swapfile",
      additional_info = f"size = {plan.target_mb}MB",
      execute = lambda: self.allocate(plan.target_mb),
    )
    yield Action(
      step = 7,
      description = f"{GREEN}restrict swapfile permissions",
      additional_info = "mode = 0o600",
      execute = self.restrict_permissions,
    )
    yield Action(
      step = 8,
      description = f"{GREEN}format and activate swapfile",
      execute = self.activate,
    )
    yield Action(
      step = 9,
      description = f"{GREEN}register swapfile in mount table",
      additional_info = self.fstab.own_entry(),
      execute = self.fstab.ensure_own_entry,
    )
    yield Action(
      step = 10,
      description = f"{GREEN}set swappiness",
      additional_info = f"vm.swappiness={self.config.swappiness} in {self.config.sysctl_conf}",
      execute = self.ensure_swappiness,
    )

  def reconcile(self, plan: SwapPlan, on_action: Callable[[Action], None] | None = None) -> ReconcileResult:
    """Executes all steps in order. The first failing step aborts the run with a StepError;
    steps that already went through are not rolled back."""
    self.warnings = []
    completed: list[int] = []
    for action in self.get_actions(plan):
      if on_action is not None:
        on_action(action)
      self.execute_action(action, completed)
      completed.append(action.step)
    return ReconcileResult(plan = plan, completed_steps = completed, warnings = list(self.warnings))

  @staticmethod
  def execute_action(action: Action, completed: list[int]):
    try:
      action.execute()
    except Exception as e:
      description = strip_colors(action.description)
      logger.error(f"step {action.step} ({description}) failed: {e}")
      raise StepError(step = action.step, description = description, cause = e, completed_steps = completed) from e

  def deactivate_swapfile(self):
    if not self.system.is_active_swap(self.swapfile):
      return
    try:
      self.system.swap_off(self.swapfile)
    except CalledProcessError as e:
      if self.system.is_active_swap(self.swapfile):
        raise ResourceError(f"unable to deactivate {self.swapfile}: {e}") from e
      logger.info(f"{self.swapfile} was not active any more")

  def delete_swapfile(self):
    if os.path.lexists(self.swapfile):
      os.unlink(self.swapfile)

  def disable_other_swaps(self):
    """Comments out the other swap entries and turns off those that are currently active, so that
    afterwards only the tool's swapfile contributes to the swap total. A swap that refuses to go
    off is reported as a warning; it will be gone after the next reboot anyway."""
    others = self.fstab.other_active_swaps()
    for problem in self.fstab.disable_other_swaps():
      self.warn(f"left mount table line untouched: {problem}")
    for entry in others:
      if not self.system.is_active_swap(entry.device):
        continue
      try:
        self.system.swap_off(entry.device)
        logger.info(f"deactivated swap {entry.device}")
      except CalledProcessError as e:
        self.warn(f"unable to deactivate swap {entry.device}, it stays active until reboot: {e}")

  def warn(self, message: str):
    logger.warn(message)
    self.warnings.append(message)

  def allocate(self, size_mb: int):
    try:
      self.system.allocate_fast(self.swapfile, size_mb)
    except Exception as e:
      logger.warn(f"fallocate failed ({e}), falling back to dd")
      self.remove_partial_file()
      try:
        self.system.allocate_zero_fill(self.swapfile, size_mb)
      except CalledProcessError as error:
        self.remove_partial_file()
        raise ResourceError(f"unable to allocate {size_mb}MB for {self.swapfile}: {error}") from error

    expected_size = size_mb * MIB
    actual_size = os.stat(self.swapfile).st_size if os.path.exists(self.swapfile) else 0
    if actual_size != expected_size:
      self.remove_partial_file()
      raise ResourceError(f"allocated swapfile has {actual_size} bytes instead of {expected_size}")

  def restrict_permissions(self):
    try:
      os.chmod(self.swapfile, 0o600)
    except OSError as e:
      self.remove_partial_file()
      raise ResourceError(f"unable to restrict permissions of {self.swapfile}: {e}") from e

  def activate(self):
    try:
      self.system.make_swap(self.swapfile)
      self.system.swap_on(self.swapfile)
    except CalledProcessError as e:
      if self.system.is_active_swap(self.swapfile):
        with suppress(CalledProcessError):
          self.system.swap_off(self.swapfile)
      self.remove_partial_file()
      raise ResourceError(f"unable to activate {self.swapfile}: {e}") from e

  def remove_partial_file(self):
    if os.path.lexists(self.swapfile):
      os.unlink(self.swapfile)

  def ensure_swappiness(self):
    value = str(self.config.swappiness)
    if self.sysctl.ensure("vm.swappiness", value):
      logger.info(f"vm.swappiness set to {value} in {self.config.sysctl_conf}")
    self.system.apply_sysctl("vm.swappiness", value)
