from __future__ import annotations
"""Bucket connection profiles and their persistence."""
from dataclasses import dataclass
import json
import logging
from pathlib import Path

import keyring
from keyring.errors import KeyringError

LOGGER = logging.getLogger(__name__)

KEYCHAIN_SERVICE = "pys3fm"


@dataclass
class ConnectionProfile:
    """Credentials and location of one bucket."""

    name: str
    endpoint_url: str
    bucket: str
    access_key: str
    secret_key: str = ""
    region: str = ""

    def public_fields(self) -> dict[str, str]:
        return {
            "name": self.name,
            "endpoint_url": self.endpoint_url,
            "bucket": self.bucket,
            "access_key": self.access_key,
            "region": self.region,
        }


class KeychainStore:
    """Keeps secret keys in the OS keychain instead of the profile file."""

    def __init__(self, service_name: str = KEYCHAIN_SERVICE):
        self._service_name = service_name

    def get_secret(self, profile_name: str) -> str:
        if not profile_name:
            return ""
        try:
            return keyring.get_password(self._service_name, profile_name) or ""
        except KeyringError:
            LOGGER.warning("Keychain lookup failed for profile '%s'", profile_name)
            return ""

    def set_secret(self, profile_name: str, secret_key: str) -> None:
        if not profile_name:
            return
        if not secret_key:
            self.delete_secret(profile_name)
            return
        try:
            keyring.set_password(self._service_name, profile_name, secret_key)
        except KeyringError:
            LOGGER.warning("Could not store secret for profile '%s'", profile_name)

    def delete_secret(self, profile_name: str) -> None:
        if not profile_name:
            return
        try:
            keyring.delete_password(self._service_name, profile_name)
        except KeyringError:
            return


class ProfileStorage:
    """JSON file of profiles; secrets live in a :class:`KeychainStore`."""

    def __init__(self, storage_path: str | Path | None = None, keychain: KeychainStore | None = None):
        if storage_path is None:
            storage_path = Path.home() / ".pys3fm_connections.json"
        self._path = Path(storage_path)
        self._keychain = keychain or KeychainStore()

    def load(self) -> list[ConnectionProfile]:
        data = self._read()
        profiles: list[ConnectionProfile] = []
        migrated = False
        for entry in data:
            try:
                profile = ConnectionProfile(
                    name=entry["name"],
                    endpoint_url=entry.get("endpoint_url", ""),
                    bucket=entry["bucket"],
                    access_key=entry["access_key"],
                    region=entry.get("region", ""),
                )
            except (KeyError, TypeError):
                continue
            plaintext = entry.get("secret_key", "")
            if plaintext:
                migrated = True
                self._keychain.set_secret(profile.name, plaintext)
                profile.secret_key = plaintext
            else:
                profile.secret_key = self._keychain.get_secret(profile.name)
            profiles.append(profile)
        if migrated:
            LOGGER.debug("Moved plaintext secrets of %s into the keychain", self._path)
            self._write([profile.public_fields() for profile in profiles])
        return profiles

    def get(self, name: str) -> ConnectionProfile:
        for profile in self.load():
            if profile.name == name:
                return profile
        raise ValueError(f"Profile '{name}' does not exist")

    def save(self, profiles: list[ConnectionProfile]) -> None:
        stale = {entry.get("name") for entry in self._read()} - {profile.name for profile in profiles}
        for profile in profiles:
            self._keychain.set_secret(profile.name, profile.secret_key)
        for name in stale:
            if isinstance(name, str):
                self._keychain.delete_secret(name)
        self._write([profile.public_fields() for profile in profiles])

    def _read(self) -> list[dict]:
        if not self._path.exists():
            return []
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            return []
        if not isinstance(data, list):
            return []
        return [entry for entry in data if isinstance(entry, dict)]

    def _write(self, data: list[dict[str, str]]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(data, indent=2), encoding="utf-8")
