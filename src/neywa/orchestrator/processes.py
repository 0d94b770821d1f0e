"""Safety-net sweep of leftover backend processes.

Cancelled tasks leave their backend process running. The restart command
uses this sweep to terminate every process whose command line matches one
of the configured patterns.
"""

import os
import re

import psutil

from neywa.telemetry import RESTART_SWEEP, get_logger

log = get_logger(__name__)


def find_backend_processes(patterns: list[str]) -> list[psutil.Process]:
    """Processes (other than this one) whose command line matches a pattern."""
    compiled = [re.compile(pattern) for pattern in patterns]
    own_pid = os.getpid()
    matches: list[psutil.Process] = []
    for proc in psutil.process_iter(["pid", "cmdline"]):
        if proc.info["pid"] == own_pid:
            continue
        cmdline = " ".join(proc.info.get("cmdline") or [])
        if cmdline and any(regex.search(cmdline) for regex in compiled):
            matches.append(proc)
    return matches


def kill_backend_processes(patterns: list[str], timeout: float = 3.0) -> int:
    """Terminate matching processes, killing those that outlive ``timeout``.

    Returns:
        Number of processes signalled.
    """
    procs = find_backend_processes(patterns)
    for proc in procs:
        try:
            proc.terminate()
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            pass
    _, alive = psutil.wait_procs(procs, timeout=timeout)
    for proc in alive:
        try:
            proc.kill()
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            pass
    log.info(RESTART_SWEEP, signalled=len(procs), killed=len(alive))
    return len(procs)
