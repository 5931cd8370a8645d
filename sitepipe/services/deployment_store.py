"""
Deployment Store
Append-only persistence of deployment attempts. Failed attempts are kept
for audit; nothing here deletes a record.
"""

import json
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from filelock import FileLock

from sitepipe.models import Deployment, DeploymentStatus, utcnow
from sitepipe.services.exceptions import DeploymentNotFoundError, InvalidStatusTransitionError
from sitepipe.utils.logger import get_logger

logger = get_logger(__name__)


def check_transition(current: DeploymentStatus, new: DeploymentStatus) -> None:
    """
    Enforce monotonic status transitions.

    BUILDING may move to LIVE or FAILED (or stay BUILDING); LIVE and FAILED
    are terminal.

    Raises:
        InvalidStatusTransitionError: On any other transition
    """
    if current is DeploymentStatus.BUILDING:
        return
    if current is new:
        return
    raise InvalidStatusTransitionError(
        f"Deployment status cannot change from {current.value} to {new.value}"
    )


class DeploymentStore(ABC):
    """
    Abstract base class for deployment persistence.
    """

    @abstractmethod
    def record(self, deployment: Deployment) -> Deployment:
        """
        Persist a new deployment attempt.

        Raises:
            ValueError: If a deployment with the same id already exists
        """
        pass

    @abstractmethod
    def get(self, deployment_id: str) -> Deployment:
        """
        Raises:
            DeploymentNotFoundError: If no such deployment exists
        """
        pass

    @abstractmethod
    def list_for_owner(self, owner_id: str) -> List[Deployment]:
        """All of an owner's deployments, newest first."""
        pass

    @abstractmethod
    def update_status(
        self,
        deployment_id: str,
        status: DeploymentStatus,
        site_url: Optional[str] = None,
        error_message: Optional[str] = None
    ) -> Deployment:
        """
        Move a deployment to ``status``, enforcing monotonic transitions.

        Raises:
            DeploymentNotFoundError: If no such deployment exists
            InvalidStatusTransitionError: If the deployment is terminal
        """
        pass


class InMemoryDeploymentStore(DeploymentStore):
    """Thread-safe process-local store."""

    def __init__(self):
        self._deployments: Dict[str, Deployment] = {}
        self._lock = threading.RLock()

    @contextmanager
    def _locked(self) -> Iterator[None]:
        """Hold exclusive access to the records for one operation."""
        with self._lock:
            yield

    def record(self, deployment: Deployment) -> Deployment:
        with self._locked():
            if deployment.id in self._deployments:
                raise ValueError(f"Deployment {deployment.id} already recorded")
            self._commit(deployment.model_copy(deep=True))

        logger.info(
            f"Recorded deployment {deployment.id} "
            f"({deployment.service_name}, {deployment.status.value})"
        )
        return deployment

    def get(self, deployment_id: str) -> Deployment:
        with self._locked():
            deployment = self._deployments.get(deployment_id)
            if deployment is None:
                raise DeploymentNotFoundError(f"Deployment {deployment_id} not found")
            return deployment.model_copy(deep=True)

    def list_for_owner(self, owner_id: str) -> List[Deployment]:
        with self._locked():
            owned = [
                d.model_copy(deep=True)
                for d in self._deployments.values()
                if d.owner_id == owner_id
            ]
        # Reversed first so equal timestamps keep newest-recorded first
        return sorted(reversed(owned), key=lambda d: d.created_at, reverse=True)

    def update_status(
        self,
        deployment_id: str,
        status: DeploymentStatus,
        site_url: Optional[str] = None,
        error_message: Optional[str] = None
    ) -> Deployment:
        with self._locked():
            current = self._deployments.get(deployment_id)
            if current is None:
                raise DeploymentNotFoundError(f"Deployment {deployment_id} not found")

            check_transition(current.status, status)

            updates = {"status": status, "updated_at": utcnow()}
            if site_url:
                updates["site_url"] = site_url
            if error_message:
                updates["error_message"] = error_message

            updated = current.model_copy(update=updates)
            self._commit(updated)

            return updated.model_copy(deep=True)

    def _commit(self, deployment: Deployment) -> None:
        """Apply one change and persist it; the change is undone if persisting fails."""
        previous = self._deployments.get(deployment.id)
        self._deployments[deployment.id] = deployment
        try:
            self._persist()
        except Exception:
            if previous is None:
                del self._deployments[deployment.id]
            else:
                self._deployments[deployment.id] = previous
            raise

    def _persist(self) -> None:
        """Hook for durable subclasses; called with the lock held."""
        pass


class JsonFileDeploymentStore(InMemoryDeploymentStore):
    """
    Store backed by a JSON file, rewritten atomically after every change.
    Used by the CLI, where each invocation is a separate process.

    Every operation takes an OS-level lock on ``<path>.lock`` and re-reads
    the file first, so overlapping CLI runs see and keep each other's
    records.
    """

    def __init__(self, path: Path, lock_timeout: float = 30.0):
        super().__init__()
        self.path = Path(path)
        self._file_lock = FileLock(str(self.path) + ".lock", timeout=lock_timeout)

    @contextmanager
    def _locked(self) -> Iterator[None]:
        with self._lock, self._file_lock:
            self._load()
            yield

    def _load(self) -> None:
        if not self.path.exists():
            self._deployments = {}
            return

        raw = json.loads(self.path.read_text(encoding="utf-8") or "[]")
        self._deployments = {
            deployment.id: deployment
            for deployment in (Deployment.model_validate(item) for item in raw)
        }

    def _persist(self) -> None:
        payload = [d.model_dump(mode="json") for d in self._deployments.values()]
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        tmp_path.replace(self.path)
