"""
Credential Store
Per-user platform tokens, encrypted at rest with Fernet and decrypted only
when a pipeline run asks for them
"""

import threading
from typing import Dict, Optional

from cryptography.fernet import Fernet, InvalidToken
from pydantic import SecretStr

from sitepipe.models import PlatformCredentials
from sitepipe.utils.config import get_settings, Settings
from sitepipe.utils.logger import get_logger

logger = get_logger(__name__)


class CredentialStoreError(Exception):
    """Raised when stored credentials cannot be decrypted"""
    pass


class CredentialStore:
    """
    In-process encrypted credential store.

    Tokens are write-once-or-update: saving a field replaces it, fields
    not passed are left as they were.
    """

    _ENCRYPTED_FIELDS = ("github_token", "render_api_key")

    def __init__(self, config: Optional[Settings] = None, encryption_key: Optional[str] = None):
        config = config or get_settings()
        key = encryption_key or config.credential_encryption_key

        if not key:
            logger.warning(
                "No CREDENTIAL_ENCRYPTION_KEY configured; using an ephemeral key. "
                "Stored credentials will not be readable after a restart."
            )
            key = Fernet.generate_key().decode("ascii")

        self._fernet = Fernet(key)
        self._records: Dict[str, Dict[str, str]] = {}
        self._lock = threading.Lock()

    def save(
        self,
        owner_id: str,
        github_token: Optional[str] = None,
        github_owner: Optional[str] = None,
        render_api_key: Optional[str] = None
    ) -> None:
        """
        Create or update a user's credentials.

        Args:
            owner_id: Caller identity
            github_token: GitHub token (encrypted before storage)
            github_owner: GitHub user/organisation for deploy repositories
            render_api_key: Render API key (encrypted before storage)
        """
        updates: Dict[str, str] = {}
        if github_token:
            updates["github_token"] = self._encrypt(github_token)
        if render_api_key:
            updates["render_api_key"] = self._encrypt(render_api_key)
        if github_owner:
            updates["github_owner"] = github_owner

        with self._lock:
            record = self._records.setdefault(owner_id, {})
            record.update(updates)

        logger.info(f"Credentials updated for {owner_id}: {sorted(updates)}")

    def get(self, owner_id: str) -> PlatformCredentials:
        """
        Load and decrypt a user's credentials.

        Returns:
            PlatformCredentials; fields the user never saved are None

        Raises:
            CredentialStoreError: If a stored token cannot be decrypted
        """
        with self._lock:
            record = dict(self._records.get(owner_id, {}))

        values = {"github_owner": record.get("github_owner")}
        for name in self._ENCRYPTED_FIELDS:
            token = record.get(name)
            values[name] = SecretStr(self._decrypt(token)) if token else None

        return PlatformCredentials(**values)

    def has_credentials(self, owner_id: str) -> bool:
        with self._lock:
            return owner_id in self._records

    def _encrypt(self, value: str) -> str:
        return self._fernet.encrypt(value.encode("utf-8")).decode("ascii")

    def _decrypt(self, value: str) -> str:
        try:
            return self._fernet.decrypt(value.encode("ascii")).decode("utf-8")
        except InvalidToken as e:
            raise CredentialStoreError("Stored credentials could not be decrypted") from e
