from __future__ import annotations

from contextlib import nullcontext
from time import sleep

import vpsswap.utils.shell as shell_module
from vpsswap.config import RunConfig
from vpsswap.errors import StepError, SwapConfigError
from vpsswap.managers.swapfile import SwapfileManager
from vpsswap.model import Action, ReconcileResult, SwapPlan
from vpsswap.planner import SwapPlanner, existing_swapfile_mb
from vpsswap.system import LinuxSystem, SystemAdapter
from vpsswap.utils.confirm import confirm, prompt
from vpsswap.utils.error_handling import handle_ctrl_c
from vpsswap.utils.json_store import JsonStore
from vpsswap.utils.lock import AdvisoryLock
from vpsswap.utils.logging import logger
from vpsswap.utils.text import *


class SwapSetup:
  """Plans and applies the swap configuration for this machine. Both command line entry points
  (vps-init and add-components) go through this class."""
  config: RunConfig
  system: SystemAdapter
  store: JsonStore
  manager: SwapfileManager

  def __init__(self, config: RunConfig, system: SystemAdapter | None = None):
    self.config = config
    self.system = system if system is not None else LinuxSystem()
    self.store = JsonStore(config.store_file)
    self.manager = SwapfileManager(config, self.system, self.store)

  def ask_size(self, recommended_mb: int) -> str | None:
    if self.config.size_override is not None:
      return self.config.size_override
    if self.config.assume_yes:
      return None
    return prompt(f"Recommended SWAP size is {recommended_mb}MB. Enter desired size (MB) or press Enter")

  def plan(self) -> SwapPlan:
    logger.clear()
    profile = self.system.memory_profile()
    printc(f"{profile}")

    override = self.ask_size(SwapPlanner.recommend(profile.total_mem_mb))
    plan = SwapPlanner.plan(
      profile = profile,
      override = override,
      disk = self.system.disk_space(self.config.swapfile),
      swapfile_exists = self.manager.swapfile_exists(),
      reclaimable_mb = existing_swapfile_mb(self.config.swapfile),
    )
    print()
    if plan.action == "no-action-needed":
      printc(f"{GREEN}Current SWAP size is sufficient. No action needed.")
    else:
      printc(f"{BOLD}Actions that will be executed (in order):")
      for action in self.manager.get_actions(plan):
        print_listitem(f"{action.description}")
        for info in action.additional_info:
          printc(f"  {info}")
    print()

    return plan

  def execute(self, plan: SwapPlan) -> ReconcileResult:
    logger.clear()
    try:
      shell_module.verbose_mode = True
      result = self.manager.reconcile(plan, on_action = self.announce)
    finally:
      shell_module.verbose_mode = False
    print_divider_line()
    printc(f"{GREEN}SWAP configured successfully.")
    return result

  @classmethod
  def announce(cls, action: Action):
    print_divider_line()
    printc(f"executing step {action.step}: {action.description}")
    for info in action.additional_info:
      printc(f"{info}")
    sleep(0.05)  # add a small delay so it's easier to follow the output

  def swap_total(self) -> str:
    return format_mb(self.system.memory_profile().current_swap_mb)

  @handle_ctrl_c
  def run(self) -> str:
    """Runs planning and execution while holding the advisory lock. Returns the status line
    for the run summary; configuration errors are reported and never propagate."""
    lock = nullcontext() if self.config.dry_run else AdvisoryLock(self.config.lock_file, self.config.lock_timeout)
    try:
      with lock:
        plan = self.plan()
        if plan.action == "no-action-needed":
          return f"Sufficient, total: {self.swap_total()}"
        if self.config.dry_run:
          return "Dry run, nothing changed"
        if not self.config.assume_yes and not confirm("confirm execution"):
          return "Skipped by user"
        self.execute(plan)
        return f"Configured, total: {self.swap_total()}"
    except StepError as e:
      printc(f"{RED}SWAP configuration aborted at step {e.step} ({e.description}): {e.cause}")
      if e.completed_steps:
        printc(f"steps already applied (not rolled back): {', '.join(str(step) for step in e.completed_steps)}")
      return f"Failed at step {e.step}: {e.cause}"
    except SwapConfigError as e:
      logger.error(f"{e}")
      printc(f"{RED}{e}")
      return f"Failed: {e}"
    finally:
      self.print_messages()

  @classmethod
  def print_messages(cls):
    if logger.messages:
      print()
      printc(f"{BOLD}Messages logged during this run:")
      for message in list(dict.fromkeys(logger.messages)):
        print_listitem(f"{message}")
