"""Per-file rename consent."""

import logging
import threading

from rich.console import Console
from rich.prompt import Prompt

from .models import Approval

logger = logging.getLogger(__name__)


class AutoApproveOracle:
    """Approves everything; used for automated runs."""

    def ask(self, old_name: str, new_name: str) -> Approval:
        return Approval.APPROVE


class PromptApprovalOracle:
    """Asks the user on the terminal."""

    CHOICES = {"yes": Approval.APPROVE, "no": Approval.REJECT, "all": Approval.APPROVE_ALL}

    def __init__(self, console: Console = None, label: str = "rename"):
        self.console = console or Console()
        self.label = label

    def ask(self, old_name: str, new_name: str) -> Approval:
        answer = Prompt.ask(
            f"[bold yellow]Approve {self.label}[/] {old_name} → [green]{new_name}[/]?",
            choices=list(self.CHOICES),
            default="yes",
            console=self.console,
        )
        return self.CHOICES[answer]


class ApprovalGate:
    """Consults an oracle until it answers 'approve all', then approves everything.

    The latch is shared by every caller of the gate and guarded by a lock.
    """

    def __init__(self, oracle, auto_approve: bool = False):
        self.oracle = oracle
        self._auto_approve = auto_approve
        self._lock = threading.Lock()

    @property
    def auto_approve(self) -> bool:
        with self._lock:
            return self._auto_approve

    def approve_all(self) -> None:
        with self._lock:
            self._auto_approve = True

    def request(self, old_name: str, new_name: str) -> bool:
        """Return True when the change may go ahead."""
        if self.auto_approve:
            return True
        answer = self.oracle.ask(old_name, new_name)
        if answer is Approval.APPROVE_ALL:
            logger.info("Auto approving all remaining changes")
            self.approve_all()
            return True
        if answer is Approval.REJECT:
            logger.info(f"Skipping {old_name}: rejected by user")
            return False
        return True
