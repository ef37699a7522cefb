from __future__ import annotations

import os
import re

from vpsswap.errors import ValidationError
from vpsswap.model import DiskSpace, MIB, MemoryProfile, SwapAction, SwapPlan

# (exclusive upper bound of total memory in MB, recommended swap in MB)
RECOMMENDATIONS: list[tuple[int, int]] = [
  (512, 1024),
  (1024, 1536),
  (2048, 2048),
  (4096, 3072),
  (8192, 4096),
  (16384, 6144),
]
RECOMMENDATION_MAX = 8192

MIN_SWAP_MB = 128
MIN_RESERVE_MB = 256
RESERVE_RATIO = 0.05

OVERRIDE_PATTERN = re.compile(r"^[0-9]+$")


class SwapPlanner:
  """Decides how much swap a machine should have and whether anything has to be done about it.
  Planning never touches the system; all inputs are passed in explicitly."""

  @staticmethod
  def recommend(total_mem_mb: int) -> int:
    if total_mem_mb < 0:
      raise ValidationError(f"memory size must not be negative: {total_mem_mb}")
    for upper_bound, recommended_mb in RECOMMENDATIONS:
      if total_mem_mb < upper_bound:
        return recommended_mb
    return RECOMMENDATION_MAX

  @staticmethod
  def parse_override(override: str | None) -> int | None:
    """Returns None if the operator just pressed Enter (use the recommendation)."""
    if override is None or override.strip() == "":
      return None
    value = override.strip()
    if not OVERRIDE_PATTERN.match(value):
      raise ValidationError(f"invalid swap size '{override}': expected a whole number of megabytes")
    return int(value)

  @staticmethod
  def reserve_mb(disk: DiskSpace) -> int:
    return max(int(disk.total_mb * RESERVE_RATIO), MIN_RESERVE_MB)

  @classmethod
  def plan(
    cls,
    profile: MemoryProfile,
    override: str | None = None,
    disk: DiskSpace | None = None,
    swapfile_exists: bool = False,
    reclaimable_mb: int = 0,
  ) -> SwapPlan:
    """Builds the swap plan. reclaimable_mb is the size of the existing swapfile that will be
    deleted before the new one gets allocated, so it counts as free space."""
    recommended_mb = cls.recommend(profile.total_mem_mb)
    override_mb = cls.parse_override(override)
    target_mb = override_mb if override_mb is not None else recommended_mb

    if target_mb < MIN_SWAP_MB:
      raise ValidationError(f"swap size of {target_mb}MB is below the minimum of {MIN_SWAP_MB}MB")

    action: SwapAction
    if target_mb <= profile.current_swap_mb:
      action = "no-action-needed"
    else:
      action = "resize" if swapfile_exists else "create"

    if disk is not None and action != "no-action-needed":
      budget_mb = disk.free_mb + reclaimable_mb - cls.reserve_mb(disk)
      if target_mb > budget_mb:
        raise ValidationError(
          f"swap size of {target_mb}MB exceeds the safe disk budget of {max(budget_mb, 0)}MB "
          f"({disk.free_mb}MB free, {cls.reserve_mb(disk)}MB kept in reserve)"
        )

    return SwapPlan(
      profile = profile,
      recommended_mb = recommended_mb,
      target_mb = target_mb,
      action = action,
    )


def existing_swapfile_mb(swapfile: str) -> int:
  if not os.path.isfile(swapfile):
    return 0
  return os.stat(swapfile).st_size // MIB
