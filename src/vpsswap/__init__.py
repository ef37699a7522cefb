from vpsswap.config import RunConfig
from vpsswap.core import SwapSetup
from vpsswap.errors import LockError, ResourceError, StateError, StepError, SwapConfigError, ValidationError
from vpsswap.managers.fstab import FstabReconciler
from vpsswap.managers.swapfile import SwapfileManager
from vpsswap.model import Action, MemoryProfile, ReconcileResult, SwapPlan
from vpsswap.planner import SwapPlanner
from vpsswap.system import LinuxSystem, SystemAdapter
