from __future__ import annotations

from datetime import datetime


def default_log_file() -> str:
  return f"/root/vpsswap_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"


class RunConfig:
  """Everything a run depends on besides the system itself. Paths are configurable so the whole
  reconcile process can be pointed at a scratch directory."""
  swapfile: str
  fstab: str
  fstab_backup: str
  sysctl_conf: str
  swappiness: int
  lock_file: str
  lock_timeout: float
  store_file: str
  log_file: str | None
  dry_run: bool
  assume_yes: bool
  size_override: str | None

  def __init__(
    self,
    swapfile: str = "/swapfile_by_script",
    fstab: str = "/etc/fstab",
    fstab_backup: str = "/etc/fstab.bak_by_script",
    sysctl_conf: str = "/etc/sysctl.conf",
    swappiness: int = 10,
    lock_file: str = "/run/vpsswap.lock",
    lock_timeout: float = 10.0,
    store_file: str = "/var/cache/vpsswap/state.json",
    log_file: str | None = None,
    dry_run: bool = False,
    assume_yes: bool = False,
    size_override: str | None = None,
  ):
    assert swapfile.startswith("/"), f"swapfile must be an absolute path: {swapfile}"
    assert 0 <= swappiness <= 200, f"swappiness out of range: {swappiness}"
    self.swapfile = swapfile
    self.fstab = fstab
    self.fstab_backup = fstab_backup
    self.sysctl_conf = sysctl_conf
    self.swappiness = swappiness
    self.lock_file = lock_file
    self.lock_timeout = lock_timeout
    self.store_file = store_file
    self.log_file = log_file
    self.dry_run = dry_run
    self.assume_yes = assume_yes
    self.size_override = size_override
