from __future__ import annotations

import sys
from argparse import ArgumentParser, ArgumentTypeError, Namespace
from os import getuid
from typing import Sequence

from vpsswap.config import RunConfig, default_log_file
from vpsswap.core import SwapSetup
from vpsswap.utils.confirm import confirm, prompt
from vpsswap.utils.error_handling import handle_ctrl_c
from vpsswap.utils.logging import logger
from vpsswap.utils.text import *


def swappiness_value(value: str) -> int:
  try:
    swappiness = int(value)
  except ValueError:
    raise ArgumentTypeError(f"not a number: '{value}'")
  if not 0 <= swappiness <= 200:
    raise ArgumentTypeError(f"must be between 0 and 200: {swappiness}")
  return swappiness


def absolute_path(value: str) -> str:
  if not value.startswith("/"):
    raise ArgumentTypeError(f"must be an absolute path: '{value}'")
  return value


def create_parser(prog: str, description: str) -> ArgumentParser:
  defaults = RunConfig()
  parser = ArgumentParser(prog = prog, description = description)
  parser.add_argument("--size", dest = "size_override", metavar = "MB", help = "swap size in MB instead of the recommendation")
  parser.add_argument("-y", "--yes", dest = "assume_yes", action = "store_true", help = "do not ask any questions")
  parser.add_argument("--dry-run", action = "store_true", help = "only show what would be done")
  parser.add_argument("--swapfile", type = absolute_path, default = defaults.swapfile)
  parser.add_argument("--fstab", default = defaults.fstab)
  parser.add_argument("--fstab-backup", default = defaults.fstab_backup)
  parser.add_argument("--sysctl-conf", default = defaults.sysctl_conf)
  parser.add_argument("--swappiness", type = swappiness_value, default = defaults.swappiness)
  parser.add_argument("--lock-file", default = defaults.lock_file)
  parser.add_argument("--store-file", default = defaults.store_file)
  parser.add_argument("--log-file", default = None, help = "defaults to /root/vpsswap_<timestamp>.log (no log file for --dry-run)")
  parser.add_argument("--no-log-file", action = "store_true")
  return parser


def config_from_args(args: Namespace) -> RunConfig:
  if args.no_log_file:
    log_file = None
  elif args.log_file is not None:
    log_file = args.log_file
  else:
    # dry runs may be started as non-root and must not leave anything behind
    log_file = None if args.dry_run else default_log_file()
  return RunConfig(
    swapfile = args.swapfile,
    fstab = args.fstab,
    fstab_backup = args.fstab_backup,
    sysctl_conf = args.sysctl_conf,
    swappiness = args.swappiness,
    lock_file = args.lock_file,
    store_file = args.store_file,
    log_file = log_file,
    dry_run = args.dry_run,
    assume_yes = args.assume_yes,
    size_override = args.size_override,
  )


def start(config: RunConfig, name: str):
  if not config.dry_run and getuid() != 0:
    raise SystemExit(f"{RED}Error: this program must be run as root (or through sudo){ENDC}")
  if config.log_file is not None:
    try:
      logger.attach(config.log_file)
    except OSError as e:
      printc(f"{YELLOW}Warning: unable to open log file {config.log_file} ({e}), continuing without it")
      return
    printc(f"{GREEN}{name} started. Log: {YELLOW}{config.log_file}")


def print_summary(swap_status: str):
  print_divider_line()
  printc(f"{BOLD}Summary:")
  printc(f"  {YELLOW}SWAP Status:{ENDC}\t\t{swap_status}")


@handle_ctrl_c
def init_main(argv: Sequence[str] | None = None) -> int:
  args = create_parser("vps-init", "Initial swap setup of a freshly rented VPS").parse_args(argv)
  config = config_from_args(args)
  start(config, "VPS initialization")
  try:
    if config.assume_yes or confirm("Configure SWAP?"):
      swap_status = SwapSetup(config).run()
    else:
      swap_status = "Skipped by user"
    print_summary(swap_status)
    return 1 if swap_status.startswith("Failed") else 0
  finally:
    logger.detach()


@handle_ctrl_c
def add_components_main(argv: Sequence[str] | None = None) -> int:
  args = create_parser("add-components", "Add or reconfigure components on an existing VPS").parse_args(argv)
  config = config_from_args(args)
  start(config, "Component Manager")
  swap_status = "Skipped"
  try:
    if config.assume_yes:
      swap_status = SwapSetup(config).run()
    else:
      while True:
        print()
        printc(f"{BLUE}Please select a component to configure:")
        printc(" 1) Configure SWAP")
        printc(" 0) Exit")
        choice = prompt("Enter your choice").strip()
        if choice == "1":
          swap_status = SwapSetup(config).run()
        elif choice == "0":
          break
        else:
          printc(f"{RED}Invalid option.")
    print_summary(swap_status)
    return 1 if swap_status.startswith("Failed") else 0
  finally:
    logger.detach()


if __name__ == "__main__":
  sys.exit(init_main())
