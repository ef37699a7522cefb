from __future__ import annotations

from vpsswap.utils.logging import logger


def confirm(message: str, default: bool = True) -> bool:
  hint = "[Y/n]" if default else "[y/N]"
  while True:
    answer = input(f"{message}: {hint} ").strip().lower()
    logger.write(f"{message}: {hint} {answer}")
    if answer == "": return default
    if answer in ("y", "yes"): return True
    if answer in ("n", "no"): return False


def prompt(message: str) -> str:
  answer = input(f"{message}: ")
  logger.write(f"{message}: {answer}")
  return answer
