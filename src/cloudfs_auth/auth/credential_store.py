"""
Credential Store for CloudFS gateways.

Each provider keeps an ordered list of encrypted credential records in its
own section of the shared settings file. The most recently saved record is
at the front, and there is at most one record per account.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Union

from ..crypto import decrypt_using, encrypt_using
from ..utils.errors import InvalidArgumentError
from .settings_file import SynchronizedSettingsFile

logger = logging.getLogger(__name__)

ACCOUNT_KEY = "account"


@dataclass
class CredentialRecord:
    """Plain-text credential fields stored for one account."""

    account: str
    fields: Dict[str, str] = field(default_factory=dict)

    def __repr__(self) -> str:
        return f"CredentialRecord(account={self.account!r}, fields={sorted(self.fields)})"


class CredentialStore:
    """Synchronized, ordered, account-keyed store of encrypted credentials."""

    def __init__(
        self,
        settings: SynchronizedSettingsFile,
        section: str,
        fields: Sequence[str],
        pass_phrase: Optional[str] = None,
    ) -> None:
        """
        Initialize the credential store.

        Args:
            settings: The shared settings file backing this store.
            section: Section name inside the settings file (provider name).
            fields: Names of the credential fields (the credential shape).
            pass_phrase: Pass phrase protecting field values at rest.
        """
        if not fields:
            raise InvalidArgumentError("fields")
        if ACCOUNT_KEY in fields:
            raise InvalidArgumentError(
                "fields", f"'{ACCOUNT_KEY}' is reserved and cannot be a credential field"
            )

        self.settings = settings
        self.section = section
        self.fields = tuple(fields)
        self._pass_phrase = pass_phrase

        if not pass_phrase:
            logger.warning(
                "No settings pass phrase configured - %s credentials will be stored as plaintext",
                section,
            )

    def _find_index(self, records: List[Dict[str, str]], account: str) -> Optional[int]:
        for index, record in enumerate(records):
            if record.get(ACCOUNT_KEY) == account:
                return index
        return None

    def load(self, account: str) -> Optional[CredentialRecord]:
        """
        Load and decrypt the record for an account.

        Returns:
            The decrypted record, or None if the account has none.

        Raises:
            CryptographicError: If a stored value cannot be decrypted.
        """
        if not account:
            raise InvalidArgumentError("account")

        with self.settings.lock:
            records = self.settings.get_section(self.section) or []
            index = self._find_index(records, account)
            if index is None:
                logger.debug("No %s credential found for %s", self.section, account)
                return None
            stored = records[index]

        values = {
            name: decrypt_using(stored[name], self._pass_phrase)
            for name in self.fields
            if stored.get(name) is not None
        }
        logger.debug("Loaded %s credential for %s", self.section, account)
        return CredentialRecord(account=account, fields=values)

    def save(
        self,
        account: str,
        credential: Union[CredentialRecord, Mapping[str, str]],
    ) -> None:
        """
        Save a credential for an account, replacing any existing one.

        The new record is inserted at the front and persisted synchronously.
        """
        if not account:
            raise InvalidArgumentError("account")

        values = credential.fields if isinstance(credential, CredentialRecord) else credential
        missing = [name for name in self.fields if values.get(name) is None]
        if missing:
            raise InvalidArgumentError(
                "credential", f"Credential is missing fields: {', '.join(missing)}"
            )

        stored = {ACCOUNT_KEY: account}
        for name in self.fields:
            stored[name] = encrypt_using(values[name], self._pass_phrase)

        with self.settings.lock:
            records = self.settings.get_section(self.section) or []
            index = self._find_index(records, account)
            if index is not None:
                del records[index]
            records.insert(0, stored)
            self.settings.set_section(self.section, records)

        logger.info("Stored %s credential for %s", self.section, account)

    def purge(self, account: Optional[str] = None) -> int:
        """
        Remove the records of an account, or all records.

        When the store becomes empty the section is removed from the
        settings file instead of being kept as an empty list.

        Returns:
            Number of removed records.
        """
        with self.settings.lock:
            records = self.settings.get_section(self.section)
            if records is None:
                return 0

            remaining = [
                r for r in records
                if account is not None and r.get(ACCOUNT_KEY) != account
            ]
            removed = len(records) - len(remaining)
            self.settings.set_section(self.section, remaining or None)

        logger.info(
            "Purged %d %s credential(s) for %s",
            removed,
            self.section,
            account if account is not None else "all accounts",
        )
        return removed

    def list_accounts(self) -> List[str]:
        """List accounts in store order, most recently saved first."""
        with self.settings.lock:
            records = self.settings.get_section(self.section) or []
        return [r[ACCOUNT_KEY] for r in records if r.get(ACCOUNT_KEY)]
