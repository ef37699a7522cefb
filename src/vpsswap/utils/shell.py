from __future__ import annotations

from inspect import cleandoc
from subprocess import CalledProcessError, Popen, run

from vpsswap.utils.logging import logger

verbose_mode: bool = False


def shell(command: str, check: bool = True, executable: str = "/bin/sh"):
  if verbose_mode:
    lines = cleandoc(command).split("\n")
    for idx, line in enumerate(lines):
      prefix = "$" if idx == 0 else " "
      logger.echo(f"{prefix} {line}")
  with Popen(command, shell = True, executable = executable) as process:
    exitcode = process.wait()
    if check and exitcode != 0:
      raise CalledProcessError(exitcode, command)


def shell_success(command: str, executable: str = "/bin/sh") -> bool:
  try:
    run(
      command,
      executable = executable,
      check = True,
      shell = True,
      capture_output = True,
      universal_newlines = True,
    )
    return True
  except CalledProcessError:
    return False
